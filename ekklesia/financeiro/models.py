from ekklesia.extensions import db
from datetime import datetime, date, timezone


class CategoriaFinanceira(db.Model):
    __tablename__ = 'categoria_financeira'
    __table_args__ = (db.UniqueConstraint('igreja_id', 'nome', 'tipo', name='uq_categoria_financeira'),)

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(100), nullable=False)
    tipo = db.Column(db.String(10), nullable=False, default='Entrada')

    def __repr__(self):
        return f'<CategoriaFinanceira {self.nome} ({self.tipo})>'


class Transacao(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    descricao = db.Column(db.String(255), nullable=False)
    valor = db.Column(db.Float, nullable=False)
    data = db.Column(db.Date, nullable=False, default=date.today, index=True)
    tipo = db.Column(db.String(10), nullable=False, index=True)
    categoria = db.Column(db.String(100), nullable=True, index=True)
    status = db.Column(db.String(20), nullable=False, default='Pendente', index=True)
    observacoes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    @property
    def conciliada(self):
        return self.status == 'Conciliado'

    @property
    def valor_com_sinal(self):
        return self.valor if self.tipo == 'Entrada' else -self.valor

    def __repr__(self):
        return f'<Transacao {self.tipo} {self.descricao} Valor: {self.valor}>'
