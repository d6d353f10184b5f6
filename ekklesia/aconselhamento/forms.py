from flask_wtf import FlaskForm
from wtforms import (StringField, SelectField, SelectMultipleField, SubmitField, DateField, TextAreaField,
                     IntegerField, BooleanField, HiddenField)
from wtforms.validators import DataRequired, Length, Optional, Email, NumberRange, ValidationError
from config import Config
from datetime import date
from .agenda import disponibilidade_de_texto, normalizar_horario, limite_agendamento


def _escolhas(valores, vazio='Selecione...'):
    return [('', vazio)] + [(v, v) for v in valores]


def _topicos():
    return [('', 'Selecione o assunto...')] + [(t['label'], t['label']) for t in Config.TOPICOS_ACONSELHAMENTO]


class _HorarioMixin:
    def validate_horario(self, field):
        if field.data and not normalizar_horario(field.data):
            raise ValidationError('Informe o horário no formato HH:MM.')


class AgendamentoPublicoForm(_HorarioMixin, FlaskForm):
    nome = StringField('Nome Completo', validators=[DataRequired(), Length(min=3, max=150)])
    email = StringField('E-mail', validators=[DataRequired(), Email()])
    telefone = StringField('Telefone (WhatsApp)', validators=[DataRequired(), Length(min=8, max=30)])
    estado_civil = SelectField('Estado Civil', validators=[Optional()])
    idade = IntegerField('Idade', validators=[Optional(), NumberRange(min=1, max=120)])
    genero = SelectField('Gênero', validators=[Optional()])
    topico = SelectField('Assunto', validators=[DataRequired()])
    detalhes = TextAreaField('Conte um pouco sobre o que está acontecendo', validators=[Optional(), Length(max=2000)])

    conselheiro_id = SelectField('Conselheiro(a)', coerce=int, validators=[Optional()], validate_choice=False)
    dia = DateField('Data', format='%Y-%m-%d', validators=[Optional()])
    horario = StringField('Horário', validators=[Optional()])

    submit = SubmitField('Confirmar Agendamento')
    fila = SubmitField('Entrar na Fila de Espera')

    def __init__(self, *args, conselheiros=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.estado_civil.choices = _escolhas(Config.ESTADOS_CIVIS)
        self.genero.choices = _escolhas(Config.GENEROS)
        self.topico.choices = _topicos()
        self.conselheiro_id.choices = [(0, 'Selecione...')] + [(c.id, c.nome) for c in (conselheiros or [])]

    def validate_dia(self, field):
        if field.data and field.data < date.today():
            raise ValidationError('A data do atendimento não pode estar no passado.')
        if field.data and field.data > limite_agendamento():
            raise ValidationError(f"Escolha uma data até {limite_agendamento().strftime('%d/%m/%Y')}.")

    def dados_solicitante(self):
        return {
            'nome': self.nome.data,
            'email': self.email.data,
            'telefone': self.telefone.data,
            'estado_civil': self.estado_civil.data or None,
            'idade': self.idade.data,
            'genero': self.genero.data or None,
            'detalhes': self.detalhes.data,
        }


class AgendamentoInternoForm(AgendamentoPublicoForm):
    submit = SubmitField('Adicionar Atendimento')
    fila = SubmitField('Adicionar à Fila')

    def validate_dia(self, field):
        return None


class ConselheiroForm(FlaskForm):
    nome = StringField('Nome', validators=[DataRequired(), Length(min=3, max=120)])
    email = StringField('E-mail', validators=[Optional(), Email()])
    telefone = StringField('Telefone', validators=[Optional(), Length(max=30)])
    genero = SelectField('Gênero', validators=[Optional()])
    data_nascimento = DateField('Data de Nascimento', format='%Y-%m-%d', validators=[Optional()])
    estado_civil = SelectField('Estado Civil', validators=[Optional()])
    topicos = SelectMultipleField('Assuntos que atende')
    disponibilidade = TextAreaField('Disponibilidade', validators=[Optional()],
                                    description='Uma linha por dia, ex.: "Segunda: 19:00, 20:00"',
                                    render_kw={'rows': 7})
    submit = SubmitField('Salvar')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.genero.choices = _escolhas(Config.GENEROS)
        self.estado_civil.choices = _escolhas(Config.ESTADOS_CIVIS)
        self.topicos.choices = [(t['label'], t['label']) for t in Config.TOPICOS_ACONSELHAMENTO]

    def validate_disponibilidade(self, field):
        if field.data and field.data.strip() and not disponibilidade_de_texto(field.data):
            raise ValidationError('Nenhum horário válido encontrado. Use o formato "Dia: HH:MM, HH:MM".')


class CancelamentoForm(FlaskForm):
    motivo = TextAreaField('Motivo do cancelamento', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Cancelar Atendimento')


class ReagendamentoForm(_HorarioMixin, FlaskForm):
    dia = DateField('Nova data', format='%Y-%m-%d', validators=[DataRequired()])
    horario = StringField('Novo horário', validators=[DataRequired()])
    submit = SubmitField('Reagendar')


class TransferenciaForm(FlaskForm):
    conselheiro_id = SelectField('Novo conselheiro', coerce=int, validators=[DataRequired()])
    motivo = TextAreaField('Justificativa da Transferência', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Transferir')


class AtribuirFilaForm(_HorarioMixin, FlaskForm):
    conselheiro_id = SelectField('Conselheiro', coerce=int, validators=[DataRequired()])
    dia = DateField('Data', format='%Y-%m-%d', validators=[DataRequired()])
    horario = StringField('Horário', validators=[DataRequired()])
    submit = SubmitField('Agendar')


class EncontroForm(FlaskForm):
    encontro_id = HiddenField()
    dia = DateField('Data', format='%Y-%m-%d', validators=[DataRequired()], default=date.today)
    assunto = StringField('Assunto', validators=[DataRequired(), Length(max=200)])
    anotacoes = TextAreaField('Anotações', validators=[DataRequired()])
    proximos_passos = TextAreaField('Próximos passos', validators=[Optional()])
    confidencial = BooleanField('Anotação confidencial')
    submit = SubmitField('Salvar Encontro')
