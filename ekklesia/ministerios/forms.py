from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional


class MinisterioForm(FlaskForm):
    nome = StringField('Nome do Ministério', validators=[DataRequired(), Length(min=2, max=150)])
    descricao = TextAreaField('Descrição', validators=[Optional(), Length(max=1000)], render_kw={'rows': 3})
    pastor_id = SelectField('Pastor / Líder responsável', coerce=int, validators=[Optional()])
    submit = SubmitField('Salvar Ministério')

    def __init__(self, *args, lideres=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.pastor_id.choices = [(0, 'Sem responsável')] + [(l.id, f'{l.nome} ({l.papel})') for l in (lideres or [])]


class RecusaVoluntarioForm(FlaskForm):
    motivo = TextAreaField('Justificativa', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Recusar')


class VoluntarioMinisterioForm(FlaskForm):
    voluntario_id = SelectField('Voluntário', coerce=int, validators=[DataRequired()])
    submit = SubmitField('Adicionar')


class TransferenciaVoluntarioForm(FlaskForm):
    destino_id = SelectField('Ministério de destino', coerce=int, validators=[DataRequired()])
    submit = SubmitField('Transferir')
