from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed
from wtforms import StringField, SelectField, SubmitField, DateField, TextAreaField, BooleanField
from wtforms.validators import DataRequired, Length, Optional, Email, ValidationError
from config import Config
from datetime import date
from .models import Membro


def _opcoes(valores, vazio=None):
    opcoes = [('', vazio)] if vazio else []
    return opcoes + [(v, v) for v in valores]


class MembroForm(FlaskForm):
    nome = StringField('Nome Completo', validators=[DataRequired(), Length(max=120)])
    email = StringField('Email', validators=[Optional(), Email(), Length(max=120)])
    telefone = StringField('Telefone', validators=[Optional(), Length(max=30)])
    genero = SelectField('Gênero', choices=_opcoes(Config.GENEROS, 'Selecione...'), validators=[Optional()])
    data_nascimento = DateField('Data de Nascimento', format='%Y-%m-%d', validators=[Optional()])
    estado_civil = SelectField('Estado Civil', choices=_opcoes(Config.ESTADOS_CIVIS, 'Selecione...'), validators=[Optional()])
    papel = SelectField('Papel', choices=_opcoes(Config.PAPEIS_MEMBRO), validators=[DataRequired()])
    status = SelectField('Status', choices=_opcoes(Config.STATUS_MEMBRO), validators=[DataRequired()])

    cpf = StringField('CPF', validators=[Optional(), Length(max=20)])
    rg = StringField('RG', validators=[Optional(), Length(max=20)])
    endereco = StringField('Endereço', validators=[Optional(), Length(max=255)])
    cep = StringField('CEP', validators=[Optional(), Length(max=12)])
    profissao = StringField('Profissão', validators=[Optional(), Length(max=100)])
    nome_pai = StringField('Nome do Pai', validators=[Optional(), Length(max=120)])
    nome_mae = StringField('Nome da Mãe', validators=[Optional(), Length(max=120)])
    igreja_origem = StringField('Igreja de Origem', validators=[Optional(), Length(max=150)])
    batizado = BooleanField('Batizado')
    duvidas = TextAreaField('Observações', validators=[Optional(), Length(max=1000)], render_kw={'rows': 3})

    avatar = FileField('Foto de Perfil', validators=[
        FileAllowed(['jpg', 'png', 'jpeg', 'gif'], 'Apenas imagens JPG, PNG, GIF e JPEG são permitidas!'),
        Optional()
    ])

    submit = SubmitField('Salvar')

    def __init__(self, *args, igreja_id=None, membro=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.igreja_id = igreja_id
        self.membro = membro

    def validate_nome(self, nome):
        query = Membro.query.filter_by(igreja_id=self.igreja_id, nome=nome.data.strip())
        if self.membro:
            query = query.filter(Membro.id != self.membro.id)
        if query.first():
            raise ValidationError('Já existe um membro cadastrado com este nome completo.')

    def validate_data_nascimento(self, field):
        if field.data and field.data > date.today():
            raise ValidationError('A data de nascimento não pode ser no futuro.')


class CadastroPublicoForm(FlaskForm):
    nome = StringField('Nome Completo', validators=[DataRequired(), Length(min=3, max=120)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    telefone = StringField('Telefone (WhatsApp)', validators=[DataRequired(), Length(max=30)])
    genero = SelectField('Gênero', choices=_opcoes(Config.GENEROS, 'Selecione...'), validators=[Optional()])
    data_nascimento = DateField('Data de Nascimento', format='%Y-%m-%d', validators=[Optional()])
    estado_civil = SelectField('Estado Civil', choices=_opcoes(Config.ESTADOS_CIVIS, 'Selecione...'), validators=[Optional()])
    endereco = StringField('Endereço', validators=[Optional(), Length(max=255)])
    profissao = StringField('Profissão', validators=[Optional(), Length(max=100)])
    igreja_origem = StringField('Igreja de Origem', validators=[Optional(), Length(max=150)])
    batizado = BooleanField('Já sou batizado(a)')
    duvidas = TextAreaField('Dúvidas ou observações', validators=[Optional(), Length(max=1000)])
    submit = SubmitField('Enviar Cadastro')

    def validate_data_nascimento(self, field):
        if field.data and field.data > date.today():
            raise ValidationError('A data de nascimento não pode ser no futuro.')

    def dados(self):
        return {
            'gender': self.genero.data or None,
            'birthdate': self.data_nascimento.data.isoformat() if self.data_nascimento.data else None,
            'marital_status': self.estado_civil.data or None,
            'address': self.endereco.data or None,
            'profession': self.profissao.data or None,
            'origin_church': self.igreja_origem.data or None,
            'baptized': bool(self.batizado.data),
            'questions': self.duvidas.data or None,
        }


class VisitanteForm(FlaskForm):
    nome = StringField('Nome', validators=[DataRequired(), Length(min=2, max=120)])
    email = StringField('Email', validators=[Optional(), Email()])
    telefone = StringField('Telefone (WhatsApp)', validators=[Optional(), Length(max=30)])
    como_conheceu = StringField('Como conheceu a igreja?', validators=[Optional(), Length(max=255)])
    submit = SubmitField('Enviar')


class RecusaInscricaoForm(FlaskForm):
    motivo = TextAreaField('Motivo', validators=[Optional(), Length(max=500)])
    submit = SubmitField('Recusar')
