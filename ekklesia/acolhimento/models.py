from ekklesia.extensions import db
from datetime import datetime, timezone
from config import Config
from ekklesia.registros.dados import carregar_json, lista_de


class NovoComeco(db.Model):
    __tablename__ = 'novo_comeco'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)

    nome = db.Column(db.String(150), nullable=False)
    telefone = db.Column(db.String(30), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    culto_decisao = db.Column(db.String(100), nullable=True)
    pequeno_grupo_id = db.Column(db.Integer, db.ForeignKey('pequeno_grupo.id'), nullable=True)

    status = db.Column(db.String(30), nullable=False, default='Pendente', index=True)
    interesses = db.Column(db.JSON, nullable=True)
    detalhes_pedido = db.Column(db.JSON, nullable=True)

    acompanhante_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    acompanhante_nome = db.Column(db.String(120), nullable=True)
    acompanhamentos = db.Column(db.JSON, nullable=True)
    atividades = db.Column(db.JSON, nullable=True)
    encaminhado_aconselhamento = db.Column(db.Boolean, nullable=False, default=False)

    criado_por = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    @property
    def lista_interesses(self):
        return [str(i.get('key')) if isinstance(i, dict) else str(i) for i in lista_de(self.interesses)]

    @property
    def labels_interesses(self):
        labels = {i['key']: i['label'] for i in Config.INTERESSES_ACOLHIMENTO}
        return [labels.get(k, k) for k in self.lista_interesses]

    @property
    def detalhes(self):
        return carregar_json(self.detalhes_pedido, {})

    def tem_interesse(self, chave):
        return chave in self.lista_interesses

    def __repr__(self):
        return f'<NovoComeco {self.nome} ({self.status})>'
