from ekklesia.extensions import db
from datetime import datetime, date, timezone
from flask import url_for


class Membro(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)

    nome = db.Column(db.String(120), nullable=False, index=True)
    email = db.Column(db.String(120), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    avatar = db.Column(db.String(255), nullable=True, default='default.jpg')

    papel = db.Column(db.String(50), nullable=False, default='Membro', index=True)
    status = db.Column(db.String(50), nullable=False, default='Ativo', index=True)

    genero = db.Column(db.String(20), nullable=True)
    data_nascimento = db.Column(db.Date, nullable=True)
    estado_civil = db.Column(db.String(30), nullable=True)

    cpf = db.Column(db.String(20), nullable=True)
    rg = db.Column(db.String(20), nullable=True)
    endereco = db.Column(db.String(255), nullable=True)
    cep = db.Column(db.String(12), nullable=True)
    profissao = db.Column(db.String(100), nullable=True)
    nome_pai = db.Column(db.String(120), nullable=True)
    nome_mae = db.Column(db.String(120), nullable=True)
    igreja_origem = db.Column(db.String(150), nullable=True)
    batizado = db.Column(db.Boolean, nullable=False, default=False)
    duvidas = db.Column(db.Text, nullable=True)

    visto_em = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    user = db.relationship('User', back_populates='membro', uselist=False)

    @property
    def idade(self):
        return calcular_idade(self.data_nascimento)

    def get_avatar_url(self):
        return url_for('static', filename=f'uploads/avatars/{self.avatar or "default.jpg"}')

    def __repr__(self):
        return f'<Membro {self.nome}>'


class Visitante(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    como_conheceu = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    def __repr__(self):
        return f'<Visitante {self.nome}>'


class PastorLider(db.Model):
    __tablename__ = 'pastor_lider'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    papel = db.Column(db.String(50), nullable=False, default='Líder')
    form_data = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<PastorLider {self.nome} ({self.papel})>'


def calcular_idade(data_nascimento, referencia=None):
    if not data_nascimento:
        return None
    referencia = referencia or date.today()
    anos = referencia.year - data_nascimento.year
    if (referencia.month, referencia.day) < (data_nascimento.month, data_nascimento.day):
        anos -= 1
    return anos
