from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, TextAreaField, DateField, SubmitField
from wtforms.validators import DataRequired, Length, Optional
from datetime import date


class RelacaoForm(FlaskForm):
    discipulador_id = SelectField('Discipulador(a)', coerce=int, validators=[DataRequired()])
    discipulo_id = SelectField('Discípulo(a)', coerce=int, validators=[DataRequired()])
    submit = SubmitField('Criar Relação')

    def __init__(self, *args, membros=None, **kwargs):
        super().__init__(*args, **kwargs)
        escolhas = [(m.id, m.nome) for m in (membros or [])]
        self.discipulador_id.choices = escolhas
        self.discipulo_id.choices = escolhas


class AtribuirDiscipuladorForm(FlaskForm):
    discipulador_id = SelectField('Discipulador(a)', coerce=int, validators=[DataRequired()])
    submit = SubmitField('Atribuir')


class EncontroDiscipuladoForm(FlaskForm):
    dia = DateField('Data', format='%Y-%m-%d', validators=[DataRequired()], default=date.today)
    assunto = StringField('Assunto', validators=[DataRequired(), Length(max=200)])
    anotacoes = TextAreaField('Anotações', validators=[DataRequired()])
    proximos_passos = TextAreaField('Próximos passos', validators=[Optional()])
    submit = SubmitField('Registrar Encontro')
