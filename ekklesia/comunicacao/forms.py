from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, SubmitField
from wtforms.validators import DataRequired, Length, Optional


class MensagemIndividualForm(FlaskForm):
    nome = StringField('Nome', validators=[Optional(), Length(max=120)])
    telefone = StringField('Telefone (WhatsApp)', validators=[DataRequired(), Length(max=30)])
    mensagem = TextAreaField('Mensagem', validators=[DataRequired(), Length(max=4000)])
    submit = SubmitField('Enviar')


class MensagemGrupoForm(FlaskForm):
    publico = SelectField('Enviar para', validators=[DataRequired()])
    modelo_id = SelectField('Modelo', coerce=int, validators=[Optional()], validate_choice=False)
    mensagem = TextAreaField('Mensagem', validators=[DataRequired(), Length(max=4000)],
                             description='Use {nome} para inserir o primeiro nome do destinatário.')
    submit = SubmitField('Enviar para o grupo')

    def __init__(self, *args, publicos=None, modelos=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.publico.choices = publicos or []
        self.modelo_id.choices = [(0, 'Nenhum')] + [(m.id, m.nome) for m in (modelos or [])]


class GrupoComunicacaoForm(FlaskForm):
    nome = StringField('Nome do grupo', validators=[DataRequired(), Length(max=120)])
    lider = StringField('Líder', validators=[Optional(), Length(max=120)])
    imagem_url = StringField('Imagem (URL)', validators=[Optional(), Length(max=255)])
    submit = SubmitField('Salvar Grupo')


class ContatoGrupoForm(FlaskForm):
    membro_id = SelectField('Membro', coerce=int, validators=[Optional()], validate_choice=False)
    nome = StringField('Nome', validators=[Optional(), Length(max=120)])
    telefone = StringField('Telefone', validators=[Optional(), Length(max=30)])
    submit = SubmitField('Adicionar')


class ModeloMensagemForm(FlaskForm):
    nome = StringField('Nome do modelo', validators=[DataRequired(), Length(max=120)])
    corpo = TextAreaField('Texto', validators=[DataRequired()])
    provedor = SelectField('Canal', choices=[('whatsapp', 'WhatsApp'), ('email', 'E-mail')], validators=[DataRequired()])
    submit = SubmitField('Salvar Modelo')


class RespostaForm(FlaskForm):
    mensagem = TextAreaField('Mensagem', validators=[DataRequired(), Length(max=4000)])
    submit = SubmitField('Enviar')
