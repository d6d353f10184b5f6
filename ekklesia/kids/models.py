from ekklesia.extensions import db
from datetime import datetime, timezone
from ekklesia.membresia.models import calcular_idade
from ekklesia.registros.dados import lista_de


class Crianca(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(120), nullable=False)
    data_nascimento = db.Column(db.Date, nullable=True)
    responsaveis = db.Column(db.JSON, nullable=True)
    alergias = db.Column(db.String(255), nullable=True)
    observacoes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    checkins = db.relationship('CheckinCrianca', backref='crianca', lazy='dynamic', cascade='all, delete-orphan')

    @property
    def lista_responsaveis(self):
        return [r for r in lista_de(self.responsaveis) if isinstance(r, dict)]

    @property
    def responsavel_principal(self):
        lista = self.lista_responsaveis
        return lista[0] if lista else None

    @property
    def idade(self):
        return calcular_idade(self.data_nascimento)

    @property
    def checkin_aberto(self):
        return self.checkins.filter_by(status='CheckedIn').first()

    def __repr__(self):
        return f'<Crianca {self.nome}>'


class CheckinCrianca(db.Model):
    __tablename__ = 'checkin_crianca'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    crianca_id = db.Column(db.Integer, db.ForeignKey('crianca.id'), nullable=False, index=True)
    checkin_em = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    checkin_por = db.Column(db.String(120), nullable=True)
    checkout_em = db.Column(db.DateTime, nullable=True)
    checkout_por = db.Column(db.String(120), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='CheckedIn', index=True)

    def __repr__(self):
        return f'<CheckinCrianca {self.crianca_id} {self.status}>'
