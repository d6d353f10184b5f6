from flask_wtf import FlaskForm
from wtforms import DateField, SelectField, IntegerField, SubmitField
from wtforms.validators import DataRequired, NumberRange, InputRequired
from datetime import date
from config import Config


class PresencaForm(FlaskForm):
    data_culto = DateField('Data do Culto', format='%Y-%m-%d', validators=[DataRequired()], default=date.today)
    tipo_culto = SelectField('Tipo de Culto', choices=[(t, t) for t in Config.TIPOS_CULTO], validators=[DataRequired()])
    adultos = IntegerField('Adultos', validators=[InputRequired(), NumberRange(min=0)], default=0)
    criancas = IntegerField('Crianças', validators=[InputRequired(), NumberRange(min=0)], default=0)
    visitantes = IntegerField('Visitantes', validators=[InputRequired(), NumberRange(min=0)], default=0)
    submit = SubmitField('Salvar Registro')
