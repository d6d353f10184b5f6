from flask_wtf import FlaskForm
from wtforms import SelectField, SubmitField, DateField, FloatField, TextAreaField, StringField
from wtforms.validators import DataRequired, NumberRange, Optional, Length, ValidationError
from config import Config


class TransacaoForm(FlaskForm):
    descricao = StringField('Descrição', validators=[DataRequired(), Length(max=255)])
    valor = FloatField('Valor (R$)', validators=[DataRequired(), NumberRange(min=0.01)])
    data_lanc = DateField('Data', format='%Y-%m-%d', validators=[DataRequired()])
    tipo = SelectField('Tipo', choices=[(t, t) for t in Config.TIPOS_TRANSACAO], validators=[DataRequired()])
    categoria = SelectField('Categoria', validators=[DataRequired(message='Selecione uma categoria.')])
    status = SelectField('Status', choices=[(s, s) for s in Config.STATUS_TRANSACAO], validators=[DataRequired()])
    observacoes = TextAreaField('Observações', render_kw={'rows': 3}, validators=[Optional()])
    submit = SubmitField('Salvar Lançamento')

    def __init__(self, *args, categorias=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.categoria.choices = [('', 'Selecione a Categoria')] + \
            [(c.nome, f'{c.nome} ({c.tipo})') for c in (categorias or [])]
        self._categorias = {c.nome: c.tipo for c in (categorias or [])}

    def validate_categoria(self, field):
        tipo = self._categorias.get(field.data)
        if tipo and tipo != self.tipo.data:
            raise ValidationError(f'A categoria "{field.data}" é de {tipo}.')


class TransacaoFilterForm(FlaskForm):
    busca = StringField('Descrição', validators=[Optional()])
    tipo_filtro = SelectField('Por Tipo', validators=[Optional()])
    status_filtro = SelectField('Por Status', validators=[Optional()])
    categoria_filtro = SelectField('Por Categoria', validators=[Optional()])
    data_inicial = DateField('Data Inicial', format='%Y-%m-%d', validators=[Optional()])
    data_final = DateField('Data Final', format='%Y-%m-%d', validators=[Optional()])
    submit_filter = SubmitField('Filtrar')

    def __init__(self, *args, categorias=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.tipo_filtro.choices = [('', 'Todos os Tipos')] + [(t, t) for t in Config.TIPOS_TRANSACAO]
        self.status_filtro.choices = [('', 'Todos os Status')] + [(s, s) for s in Config.STATUS_TRANSACAO]
        self.categoria_filtro.choices = [('', 'Todas as Categorias')] + \
            sorted({(c.nome, c.nome) for c in (categorias or [])})

    def validate_data_final(self, field):
        if field.data and self.data_inicial.data and field.data < self.data_inicial.data:
            raise ValidationError('A data final deve ser posterior à data inicial.')


class CategoriaFinanceiraForm(FlaskForm):
    nome = StringField('Nome da Categoria', validators=[DataRequired(), Length(max=100)])
    tipo = SelectField('Tipo', choices=[(t, t) for t in Config.TIPOS_TRANSACAO], validators=[DataRequired()])
    submit = SubmitField('Salvar Categoria')
