from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, TextAreaField, SubmitField, SelectMultipleField
from wtforms.validators import DataRequired, Email, Optional, Length
from wtforms.widgets import ListWidget, CheckboxInput
from config import Config


class NovoComecoForm(FlaskForm):
    nome = StringField('Nome completo', validators=[DataRequired(), Length(max=150)])
    telefone = StringField('WhatsApp', validators=[DataRequired(), Length(max=30)])
    email = StringField('E-mail', validators=[Optional(), Email()])
    culto = SelectField('Em qual culto você tomou a decisão?', validators=[Optional()])
    pequeno_grupo_id = SelectField('Já frequenta algum GC?', coerce=int, validators=[Optional()], validate_choice=False)
    genero = SelectField('Gênero', choices=[('', 'Selecione')] + [(g, g) for g in Config.GENEROS], validators=[Optional()])
    interesses = SelectMultipleField(
        'Interesses',
        choices=[(i['key'], i['label']) for i in Config.INTERESSES_ACOLHIMENTO],
        option_widget=CheckboxInput(), widget=ListWidget(prefix_label=False),
        validators=[Optional()],
    )
    topico_aconselhamento = SelectField('Assunto do aconselhamento', validators=[Optional()])
    pedido_oracao = TextAreaField('Pedido de oração', validators=[Optional(), Length(max=1000)])
    submit = SubmitField('Enviar')

    def __init__(self, *args, grupos=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.culto.choices = [('', 'Selecione')] + [(c, c) for c in Config.TIPOS_CULTO]
        self.pequeno_grupo_id.choices = [(0, 'Não frequento')] + [(g.id, g.nome) for g in (grupos or [])]
        self.topico_aconselhamento.choices = [('', 'Não se aplica')] + \
            [(t['label'], t['label']) for t in Config.TOPICOS_ACONSELHAMENTO]

    def detalhes(self):
        return {
            'gender': self.genero.data or None,
            'counseling_topics': self.topico_aconselhamento.data or None,
            'prayer_request': self.pedido_oracao.data or None,
        }


class ContatoForm(FlaskForm):
    anotacoes = TextAreaField('Comentário do contato', validators=[DataRequired(), Length(max=2000)])
    submit = SubmitField('Registrar Contato')


class StatusAcolhimentoForm(FlaskForm):
    status = SelectField('Status', choices=[(s, s) for s in Config.STATUS_ACOLHIMENTO], validators=[DataRequired()])
    submit = SubmitField('Alterar')
