from ekklesia.extensions import db
from datetime import datetime, timezone
from .dados import carregar_json

PAPEL_AGENDAMENTO = 'Conselheiro'
PAPEL_VOLUNTARIO = 'Voluntário'
PAPEL_MINISTERIO = 'Ministério'
PAPEL_DISCIPULADO = 'Discipulado'

PAPEIS_INSCRICAO = ['Membro', 'Consolidador', 'Coordenador', 'Pastor', 'Líder']


class RegistroPendente(db.Model):
    """Linha genérica de "inscrição".

    O campo ``papel`` decide o que ``form_data`` representa: atendimento de
    aconselhamento, inscrição de voluntário, definição de ministério, relação
    de discipulado ou cadastro aguardando aprovação.
    """
    __tablename__ = 'registro_pendente'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    nome = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    papel = db.Column(db.String(50), nullable=False, index=True)
    status = db.Column(db.String(50), nullable=False, default='Pendente', index=True)
    form_data = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    @property
    def dados(self):
        return carregar_json(self.form_data, {})

    def __repr__(self):
        return f'<RegistroPendente {self.papel}: {self.nome} ({self.status})>'
