from flask_wtf import FlaskForm
from wtforms import StringField, DateField, TextAreaField, SubmitField
from wtforms.validators import DataRequired, Optional, Length


class CriancaForm(FlaskForm):
    nome = StringField('Nome Completo da Criança', validators=[DataRequired(), Length(max=120)])
    data_nascimento = DateField('Data de Nascimento', format='%Y-%m-%d', validators=[DataRequired()])
    alergias = StringField('Alergias', validators=[Optional(), Length(max=255)])
    observacoes = TextAreaField('Observações', validators=[Optional()])
    responsavel1_nome = StringField('Nome do Responsável', validators=[DataRequired(), Length(max=120)])
    responsavel1_telefone = StringField('Telefone do Responsável (WhatsApp)', validators=[DataRequired(), Length(max=30)])
    responsavel2_nome = StringField('Nome do Responsável 2', validators=[Optional(), Length(max=120)])
    responsavel2_telefone = StringField('Telefone do Responsável 2', validators=[Optional(), Length(max=30)])
    submit = SubmitField('Cadastrar Criança')

    def responsaveis(self):
        return [
            {'name': self.responsavel1_nome.data or '', 'phone': self.responsavel1_telefone.data or ''},
            {'name': self.responsavel2_nome.data or '', 'phone': self.responsavel2_telefone.data or ''},
        ]


class TelefoneResponsavelForm(FlaskForm):
    telefone = StringField('Qual o seu número de Celular (WhatsApp)?', validators=[DataRequired(), Length(max=30)])
    submit = SubmitField('Continuar')


class MensagemResponsavelForm(FlaskForm):
    mensagem = TextAreaField('Mensagem', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Enviar via WhatsApp')
