from ekklesia.extensions import db
from datetime import datetime, timezone
from ekklesia.registros.dados import carregar_json, lista_de
from ekklesia.membresia.models import calcular_idade


class Conselheiro(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)

    nome = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    genero = db.Column(db.String(20), nullable=True)
    data_nascimento = db.Column(db.Date, nullable=True)
    estado_civil = db.Column(db.String(30), nullable=True)

    topicos = db.Column(db.JSON, nullable=True)
    disponibilidade = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def lista_topicos(self):
        return [str(t) for t in lista_de(self.topicos)]

    @property
    def disponibilidade_dict(self):
        return carregar_json(self.disponibilidade, {})

    @property
    def idade(self):
        return calcular_idade(self.data_nascimento)

    def __repr__(self):
        return f'<Conselheiro {self.nome}>'
