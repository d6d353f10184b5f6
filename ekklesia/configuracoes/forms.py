from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField, SelectField
from wtforms.validators import DataRequired, Email, Optional, Length, EqualTo, ValidationError
from ekklesia.auth.models import User
from config import Config


class IgrejaForm(FlaskForm):
    nome = StringField('Nome da Igreja', validators=[DataRequired(), Length(max=150)])
    cnpj = StringField('CNPJ', validators=[Optional(), Length(max=20)])
    endereco = StringField('Endereço', validators=[Optional(), Length(max=255)])
    telefone = StringField('Telefone', validators=[Optional(), Length(max=30)])
    pastor_titular_nome = StringField('Pastor Titular', validators=[Optional(), Length(max=120)])
    pastor_titular_email = StringField('E-mail do Pastor Titular', validators=[Optional(), Email()])
    submit = SubmitField('Salvar')


class UsuarioForm(FlaskForm):
    nome = StringField('Nome', validators=[DataRequired(), Length(max=120)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    papel = SelectField('Papel', choices=[(p, p) for p in Config.PAPEIS_USUARIO], validators=[DataRequired()])
    conselheiro_id = SelectField('Perfil de Conselheiro', coerce=int, default=0)
    password = PasswordField(
        'Senha',
        validators=[Optional(), Length(min=8, message="A senha deve ter no mínimo 8 caracteres.")]
    )
    password2 = PasswordField('Repetir Senha', validators=[EqualTo('password', message="As senhas não coincidem.")])
    submit = SubmitField('Salvar')

    def __init__(self, *args, conselheiros=(), usuario=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.usuario = usuario
        self.conselheiro_id.choices = [(0, 'Nenhum')] + [(c.id, c.nome) for c in conselheiros]

    def validate_email(self, email):
        query = User.query.filter_by(email=email.data)
        if self.usuario:
            query = query.filter(User.id != self.usuario.id)
        if query.first():
            raise ValidationError('Este email já está em uso.')

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        # Optional() interrompe a cadeia com a senha vazia; usuário novo precisa de senha
        if not self.usuario and not self.password.data:
            self.password.errors.append('Informe uma senha para o novo usuário.')
            return False
        return True

    def validate_conselheiro_id(self, field):
        if not field.data:
            return
        query = User.query.filter_by(conselheiro_id=field.data)
        if self.usuario:
            query = query.filter(User.id != self.usuario.id)
        if query.first():
            raise ValidationError('Este conselheiro já está vinculado a outro usuário.')
