from ekklesia.extensions import db
from datetime import datetime, timezone
from ekklesia.registros.dados import ids_de


class PequenoGrupo(db.Model):
    __tablename__ = 'pequeno_grupo'
    __table_args__ = (db.UniqueConstraint('igreja_id', 'nome', name='uq_pequeno_grupo_nome'),)

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(100), nullable=False)
    lider_id = db.Column(db.Integer, db.ForeignKey('membro.id'), nullable=True)
    membro_ids = db.Column(db.JSON, nullable=True)
    local = db.Column(db.String(255), nullable=True)
    imagem_url = db.Column(db.String(255), nullable=True)
    dia_reuniao = db.Column(db.String(20), nullable=True)
    horario_reuniao = db.Column(db.String(10), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    lider = db.relationship('Membro', foreign_keys=[lider_id])

    @property
    def ids_membros(self):
        return ids_de(self.membro_ids)

    def tem_membro(self, membro_id):
        return membro_id in self.ids_membros

    def adicionar_membro(self, membro_id):
        """Devolve False quando o membro já participa."""
        ids = self.ids_membros
        if membro_id in ids:
            return False
        self.membro_ids = ids + [membro_id]
        return True

    def remover_membro(self, membro_id):
        ids = self.ids_membros
        if membro_id not in ids:
            return False
        self.membro_ids = [i for i in ids if i != membro_id]
        return True

    def __repr__(self):
        return f'<PG: {self.nome}>'
