from ekklesia.extensions import db
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from flask import current_app

jornada_membro_associacao = db.Table('jornada_membro_associacao',
    Column('jornada_id', Integer, ForeignKey('jornada_evento.id'), primary_key=True),
    Column('membro_id', Integer, ForeignKey('membro.id'), primary_key=True)
)


class JornadaEvento(db.Model):
    __tablename__ = 'jornada_evento'

    id = Column(Integer, primary_key=True)
    igreja_id = Column(Integer, ForeignKey('igreja.id'), nullable=False, index=True)
    usuario_executor_id = Column(Integer, ForeignKey('user.id'), nullable=True)
    data_evento = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    tipo_acao = Column(String(100), nullable=False, index=True)
    descricao_detalhada = Column(Text, nullable=False)
    referencia = Column(String(100), nullable=True)

    membros_afetados = relationship('Membro', secondary=jornada_membro_associacao,
                                    backref=db.backref('jornada_eventos_membro', lazy='dynamic'), lazy='dynamic')

    executor = relationship('User', backref='eventos_executados')

    def __repr__(self):
        return f'<JornadaEvento {self.data_evento.strftime("%Y-%m-%d %H:%M")}: {self.tipo_acao}>'


def registrar_evento_jornada(tipo_acao, descricao_detalhada, usuario_executor, igreja_id=None, membros=None, referencia=None):
    """Grava um evento no histórico de atividades da igreja.

    Falhas aqui não devem desfazer a operação principal, que já foi
    confirmada antes da chamada.
    """
    if igreja_id is None and usuario_executor is not None:
        igreja_id = usuario_executor.igreja_id
    if igreja_id is None:
        return None

    try:
        evento = JornadaEvento(
            igreja_id=igreja_id,
            tipo_acao=tipo_acao,
            descricao_detalhada=descricao_detalhada,
            usuario_executor_id=usuario_executor.id if usuario_executor else None,
            referencia=referencia
        )
        db.session.add(evento)
        db.session.flush()

        if membros:
            for m in membros:
                evento.membros_afetados.append(m)

        db.session.commit()
        current_app.logger.debug(f"Evento de jornada registrado: '{tipo_acao}'")
        return evento
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Erro ao registrar evento de jornada: {e}")
        return None
