from ekklesia.extensions import db
from datetime import datetime, timezone


class HistoricoMensagem(db.Model):
    __tablename__ = 'historico_mensagem'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome_membro = db.Column(db.String(120), nullable=True)
    telefone_membro = db.Column(db.String(30), nullable=False, index=True)
    corpo = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    erro = db.Column(db.Text, nullable=True)
    enviado_por = db.Column(db.String(120), nullable=True)
    campanha_id = db.Column(db.String(100), nullable=True, index=True)
    lida = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    def __repr__(self):
        return f'<HistoricoMensagem {self.telefone_membro} ({self.status})>'


class MensagemRecebida(db.Model):
    __tablename__ = 'mensagem_recebida'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    telefone = db.Column(db.String(30), nullable=False, index=True)
    nome_contato = db.Column(db.String(120), nullable=True)
    mensagem = db.Column(db.Text, nullable=True)
    wa_message_id = db.Column(db.String(120), nullable=True, unique=True)
    lida = db.Column(db.Boolean, nullable=False, default=False)
    recebida_em = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    def __repr__(self):
        return f'<MensagemRecebida {self.telefone}>'


class GrupoComunicacao(db.Model):
    __tablename__ = 'grupo_comunicacao'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(120), nullable=False)
    lider = db.Column(db.String(120), nullable=True)
    imagem_url = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    membros = db.relationship('MembroGrupoComunicacao', backref='grupo', lazy='dynamic', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<GrupoComunicacao {self.nome}>'


class MembroGrupoComunicacao(db.Model):
    __tablename__ = 'membro_grupo_comunicacao'

    id = db.Column(db.Integer, primary_key=True)
    grupo_id = db.Column(db.Integer, db.ForeignKey('grupo_comunicacao.id'), nullable=False, index=True)
    membro_id = db.Column(db.Integer, db.ForeignKey('membro.id'), nullable=True)
    nome = db.Column(db.String(120), nullable=False)
    telefone = db.Column(db.String(30), nullable=False)
    ativo = db.Column(db.Boolean, nullable=False, default=True)
    adicionado_em = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (db.UniqueConstraint('grupo_id', 'telefone', name='_grupo_telefone_uc'),)


class ModeloMensagem(db.Model):
    __tablename__ = 'modelo_mensagem'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(120), nullable=False)
    corpo = db.Column(db.Text, nullable=False)
    provedor = db.Column(db.String(30), nullable=False, default='whatsapp')
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<ModeloMensagem {self.nome}>'
