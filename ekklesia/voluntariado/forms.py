from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, SelectMultipleField, SubmitField, TextAreaField, widgets
from wtforms.validators import DataRequired, Length, Optional, Email, ValidationError
from config import Config
from ekklesia.aconselhamento.agenda import disponibilidade_de_texto


class CheckboxMultiplo(SelectMultipleField):
    widget = widgets.ListWidget(prefix_label=False)
    option_widget = widgets.CheckboxInput()


class InscricaoVoluntarioForm(FlaskForm):
    nome = StringField('Nome Completo', validators=[DataRequired(), Length(min=3, max=150)])
    email = StringField('E-mail', validators=[DataRequired(), Email()])
    telefone = StringField('Telefone (WhatsApp)', validators=[DataRequired(), Length(min=8, max=30)])
    ministerios = CheckboxMultiplo('Ministérios de interesse', coerce=int, validators=[Optional()])
    disponibilidade = TextAreaField('Disponibilidade', validators=[Optional()],
                                    description='Uma linha por dia, ex.: "Domingo: 09:00, 18:00"',
                                    render_kw={'rows': 4})
    observacoes = TextAreaField('Observações', validators=[Optional(), Length(max=1000)])
    submit = SubmitField('Quero ser voluntário')

    def __init__(self, *args, ministerios=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.ministerios.choices = [(m.id, m.nome) for m in (ministerios or [])]

    def validate_disponibilidade(self, field):
        if field.data and field.data.strip() and not disponibilidade_de_texto(field.data):
            raise ValidationError('Nenhum horário válido encontrado. Use o formato "Dia: HH:MM, HH:MM".')


class AtribuirMinisteriosForm(FlaskForm):
    ministerios = CheckboxMultiplo('Ministérios', coerce=int, validators=[DataRequired()])
    submit = SubmitField('Encaminhar para aprovação')


class StatusEmLoteForm(FlaskForm):
    status = SelectField('Novo status', validators=[DataRequired()])
    submit = SubmitField('Atualizar selecionados')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.status.choices = [(s, s) for s in Config.STATUS_VOLUNTARIO]


class EscalaForm(FlaskForm):
    ministerio_id = SelectField('Ministério', coerce=int, validators=[DataRequired()])
    mes = StringField('Mês (AAAA-MM)', validators=[DataRequired(), Length(min=7, max=7)])
    submit = SubmitField('Gerar Escala')

    def validate_mes(self, field):
        partes = (field.data or '').split('-')
        if len(partes) != 2 or not all(p.isdigit() for p in partes) or not 1 <= int(partes[1]) <= 12:
            raise ValidationError('Informe o mês no formato AAAA-MM.')
