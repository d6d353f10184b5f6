from ekklesia.extensions import db
from datetime import datetime, timezone
from ekklesia.registros.dados import carregar_json, ids_de


class Voluntario(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    membro_id = db.Column(db.Integer, db.ForeignKey('membro.id'), nullable=True)

    nome = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    papel = db.Column(db.String(50), nullable=False, default='Voluntário')

    ministerios = db.Column(db.JSON, nullable=True)
    disponibilidade = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    membro = db.relationship('Membro', backref=db.backref('voluntario', uselist=False))

    @property
    def ministerio_ids(self):
        return ids_de(self.ministerios)

    @property
    def disponibilidade_dict(self):
        return carregar_json(self.disponibilidade, {})

    def __repr__(self):
        return f'<Voluntario {self.nome}>'


class EscalaVoluntario(db.Model):
    __tablename__ = 'escala_voluntario'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    ministerio_id = db.Column(db.Integer, db.ForeignKey('registro_pendente.id'), nullable=False)
    nome_ministerio = db.Column(db.String(150), nullable=True)
    mes = db.Column(db.String(7), nullable=False)
    dados_escala = db.Column(db.JSON, nullable=True)
    aprovada = db.Column(db.Boolean, nullable=False, default=False)
    enviada_em = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (db.UniqueConstraint('igreja_id', 'ministerio_id', 'mes', name='_escala_igreja_ministerio_mes_uc'),)

    @property
    def semanas(self):
        return carregar_json(self.dados_escala, [])

    def __repr__(self):
        return f'<EscalaVoluntario {self.nome_ministerio} {self.mes}>'
