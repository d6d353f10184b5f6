from flask_wtf import FlaskForm
from wtforms import StringField, SubmitField, SelectField
from wtforms.validators import DataRequired, Length, Optional, ValidationError, Regexp
from ekklesia.grupos.models import PequenoGrupo
from ekklesia.igrejas.models import consulta_igreja


class PequenoGrupoForm(FlaskForm):
    nome = StringField('Nome do GC', validators=[DataRequired(), Length(min=2, max=100)])
    lider_id = SelectField('Líder', coerce=int, validators=[Optional()])
    local = StringField('Local', validators=[Optional(), Length(max=255)])
    imagem_url = StringField('Imagem (URL)', validators=[Optional(), Length(max=255)])
    dia_reuniao = SelectField('Dia da Reunião', validators=[Optional()],
                              choices=[('', 'Selecione'),
                                       ('Segunda-feira', 'Segunda-feira'),
                                       ('Terça-feira', 'Terça-feira'),
                                       ('Quarta-feira', 'Quarta-feira'),
                                       ('Quinta-feira', 'Quinta-feira'),
                                       ('Sexta-feira', 'Sexta-feira'),
                                       ('Sábado', 'Sábado'),
                                       ('Domingo', 'Domingo')])
    horario_reuniao = StringField('Horário (Ex: 19:30)', validators=[
        Optional(), Regexp(r'^\d{2}:\d{2}$', message='Use o formato HH:MM.')])
    submit = SubmitField('Salvar Grupo')

    def __init__(self, *args, membros=None, **kwargs):
        self.grupo = kwargs.get('obj')
        super().__init__(*args, **kwargs)
        self.lider_id.choices = [(0, 'Sem líder')] + [(m.id, m.nome) for m in (membros or [])]

    def validate_nome(self, nome):
        grupo = consulta_igreja(PequenoGrupo).filter(PequenoGrupo.nome == nome.data.strip()).first()
        if grupo and (not self.grupo or grupo.id != self.grupo.id):
            raise ValidationError('Já existe um grupo com este nome. Por favor, escolha outro.')
