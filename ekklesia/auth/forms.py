from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField, SelectField, BooleanField
from wtforms.validators import DataRequired, Email, EqualTo, Length, Optional, ValidationError
from ekklesia.auth.models import User


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Senha', validators=[DataRequired()])
    lembrar = BooleanField('Manter conectado')
    submit = SubmitField('Entrar')


class RegistroForm(FlaskForm):
    nome = StringField('Seu Nome', validators=[DataRequired(), Length(min=3, max=120)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Senha', validators=[DataRequired(), Length(min=8, message="A senha deve ter no mínimo 8 caracteres.")])
    password2 = PasswordField(
        'Repita a Senha', validators=[DataRequired(), EqualTo('password', message="As senhas não coincidem.")])
    submit = SubmitField('Criar Conta')

    def validate_email(self, email):
        if User.query.filter_by(email=email.data.strip().lower()).first() is not None:
            raise ValidationError('Email já cadastrado.')


class RegistroIgrejaForm(RegistroForm):
    nome_igreja = StringField('Nome da Igreja', validators=[DataRequired(), Length(max=150)])
    cnpj = StringField('CNPJ', validators=[Optional(), Length(max=20)])
    telefone = StringField('Telefone', validators=[Optional(), Length(max=30)])
    endereco = StringField('Endereço', validators=[Optional(), Length(max=255)])
    submit = SubmitField('Criar Igreja')


class AssociarIgrejaForm(FlaskForm):
    igreja_id = SelectField('Igreja', coerce=int, validators=[DataRequired(message='Selecione uma igreja.')])
    submit = SubmitField('Associar')

    def __init__(self, *args, igrejas=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.igreja_id.choices = [(0, 'Selecione sua igreja')] + [
            (i.id, f'{i.nome} ({i.pastor_titular_nome or "Pastor não informado"})') for i in igrejas
        ]
