import uuid

from ekklesia.extensions import db
from ekklesia.registros.models import RegistroPendente, PAPEL_DISCIPULADO
from ekklesia.registros.dados import adicionar_atividade, atualizar_dados, nova_atividade
from ekklesia.membresia.models import Membro


def relacoes_da_igreja(igreja_id, status=None):
    query = RegistroPendente.query.filter_by(igreja_id=igreja_id, papel=PAPEL_DISCIPULADO)
    if status:
        query = query.filter(RegistroPendente.status.in_(status))
    return query.order_by(RegistroPendente.created_at.desc()).all()


def discipulos_pendentes(igreja_id):
    return [r for r in relacoes_da_igreja(igreja_id, ['Pendente']) if not r.dados.get('discipler_id')]


def _membro_da_igreja(igreja_id, membro_id):
    if not membro_id:
        return None
    return Membro.query.filter_by(igreja_id=igreja_id, id=membro_id).first()


def criar_relacao(igreja_id, discipulador_id, discipulo_id, usuario):
    if not discipulador_id or not discipulo_id:
        raise ValueError('Selecione o discipulador e o discípulo.')
    if discipulador_id == discipulo_id:
        raise ValueError('O discipulador e o discípulo não podem ser a mesma pessoa.')

    discipulador = _membro_da_igreja(igreja_id, discipulador_id)
    discipulo = _membro_da_igreja(igreja_id, discipulo_id)
    if discipulador is None or discipulo is None:
        raise ValueError('Membro não encontrado.')

    for r in relacoes_da_igreja(igreja_id, ['Ativo']):
        d = r.dados
        if d.get('discipler_id') == discipulador.id and d.get('disciple_id') == discipulo.id:
            raise ValueError('Esta relação de discipulado já existe.')

    relacao = RegistroPendente(
        igreja_id=igreja_id,
        nome=f'Discipulado {discipulador.nome} / {discipulo.nome}',
        email=discipulo.email,
        telefone=discipulo.telefone,
        papel=PAPEL_DISCIPULADO,
        status='Ativo',
        form_data={
            'discipler_id': discipulador.id,
            'disciple_id': discipulo.id,
            'disciple_name': discipulo.nome,
            'meetings': [],
            'activities': [nova_atividade('created', 'Relação de discipulado criada.', usuario)],
        },
    )
    db.session.add(relacao)
    db.session.commit()
    return relacao


def criar_pendente(igreja_id, nome, email, telefone, origem, detalhes=None, discipulo_id=None, usuario=None):
    """Discípulo aguardando discipulador (ex.: vindo do acolhimento)."""
    relacao = RegistroPendente(
        igreja_id=igreja_id,
        nome=nome,
        email=email,
        telefone=telefone,
        papel=PAPEL_DISCIPULADO,
        status='Pendente',
        form_data={
            'discipler_id': None,
            'disciple_id': discipulo_id,
            'disciple_name': nome,
            'source': origem,
            'initial_request_details': detalhes or '',
            'meetings': [],
            'activities': [nova_atividade('created', f'Encaminhado para discipulado ({origem}).', usuario)],
        },
    )
    db.session.add(relacao)
    db.session.commit()
    return relacao


def atribuir_discipulador(relacao, discipulador_id, usuario):
    discipulador = _membro_da_igreja(relacao.igreja_id, discipulador_id)
    if discipulador is None:
        raise ValueError('Selecione um discipulador.')
    if discipulador.id == relacao.dados.get('disciple_id'):
        raise ValueError('O discipulador e o discípulo não podem ser a mesma pessoa.')
    dados = atualizar_dados(relacao.form_data, discipler_id=discipulador.id)
    relacao.form_data = adicionar_atividade(dados, 'assigned_discipler',
                                            f'Discipulador {discipulador.nome} atribuído.', usuario)
    relacao.status = 'Ativo'
    db.session.commit()
    return discipulador


def registrar_encontro(relacao, data, assunto, anotacoes, proximos_passos, usuario):
    if not assunto or not anotacoes:
        raise ValueError('Preencha o assunto e as anotações.')
    encontros = list(relacao.dados.get('meetings') or [])
    encontros.append({
        'id': f'meeting-{uuid.uuid4().hex[:12]}',
        'meeting_date': data.isoformat() if hasattr(data, 'isoformat') else str(data),
        'topic': assunto,
        'notes': anotacoes,
        'next_steps': proximos_passos or '',
    })
    dados = atualizar_dados(relacao.form_data, meetings=encontros)
    relacao.form_data = adicionar_atividade(dados, 'add_meeting', f'Encontro sobre "{assunto}" registrado.', usuario)
    db.session.commit()


def encerrar(relacao, usuario):
    relacao.status = 'Concluído'
    relacao.form_data = adicionar_atividade(relacao.form_data, 'status_change', 'Discipulado concluído.', usuario)
    db.session.commit()
