"""Ministérios e o fluxo de aprovação de voluntários pelo líder.

Um ministério é um ``RegistroPendente`` com papel ``Ministério`` e status
``Ativo``. ``form_data['volunteer_ids']`` guarda ids de ``Voluntario``; as
inscrições de voluntário guardam em ``assigned_ministry_ids`` os ministérios
que ainda precisam aprovar a pessoa.
"""
from flask import current_app
from ekklesia.extensions import db
from ekklesia.registros.models import RegistroPendente, PAPEL_MINISTERIO, PAPEL_VOLUNTARIO
from ekklesia.registros.dados import adicionar_atividade, atualizar_dados, ids_de, nova_atividade
from ekklesia.membresia.models import Membro
from ekklesia.voluntariado.models import Voluntario, EscalaVoluntario

STATUS_AGUARDANDO_LIDER = 'Aguardando Aprovação do Líder'


def ministerios_da_igreja(igreja_id):
    return RegistroPendente.query.filter_by(igreja_id=igreja_id, papel=PAPEL_MINISTERIO) \
        .order_by(RegistroPendente.nome).all()


def obter_ministerio(igreja_id, ministerio_id):
    return RegistroPendente.query.filter_by(igreja_id=igreja_id, papel=PAPEL_MINISTERIO, id=ministerio_id).first()


def criar_ministerio(igreja_id, nome, descricao, pastor_id, usuario):
    if not nome or not nome.strip():
        raise ValueError('Informe o nome do ministério.')
    existente = RegistroPendente.query.filter_by(igreja_id=igreja_id, papel=PAPEL_MINISTERIO, nome=nome.strip()).first()
    if existente:
        raise ValueError('Já existe um ministério com este nome.')

    ministerio = RegistroPendente(
        igreja_id=igreja_id,
        nome=nome.strip(),
        papel=PAPEL_MINISTERIO,
        status='Ativo',
        form_data={
            'description': descricao or '',
            'pastor_id': pastor_id,
            'volunteer_ids': [],
            'activities': [nova_atividade('created', f'Ministério {nome.strip()} criado.', usuario)],
        },
    )
    db.session.add(ministerio)
    db.session.commit()
    return ministerio


def editar_ministerio(ministerio, nome, descricao, pastor_id, usuario):
    if not nome or not nome.strip():
        raise ValueError('Informe o nome do ministério.')
    dados = atualizar_dados(ministerio.form_data, description=descricao or '', pastor_id=pastor_id)
    ministerio.nome = nome.strip()
    ministerio.form_data = adicionar_atividade(dados, 'updated', 'Dados do ministério atualizados.', usuario)
    db.session.commit()


def voluntarios_do_ministerio(ministerio):
    ids = ids_de(ministerio.dados.get('volunteer_ids'))
    if not ids:
        return []
    return Voluntario.query.filter(Voluntario.igreja_id == ministerio.igreja_id, Voluntario.id.in_(ids)) \
        .order_by(Voluntario.nome).all()


def inscricoes_aguardando(ministerio):
    inscricoes = RegistroPendente.query.filter_by(
        igreja_id=ministerio.igreja_id, papel=PAPEL_VOLUNTARIO, status=STATUS_AGUARDANDO_LIDER,
    ).order_by(RegistroPendente.created_at).all()
    return [i for i in inscricoes if ministerio.id in ids_de(i.dados.get('assigned_ministry_ids'))]


def _voluntario_da_inscricao(inscricao):
    dados = inscricao.dados
    voluntario = None
    if dados.get('voluntario_id'):
        voluntario = Voluntario.query.filter_by(igreja_id=inscricao.igreja_id, id=dados['voluntario_id']).first()
    if voluntario is None and inscricao.email:
        voluntario = Voluntario.query.filter_by(igreja_id=inscricao.igreja_id, email=inscricao.email).first()
    if voluntario is None:
        voluntario = Voluntario(
            igreja_id=inscricao.igreja_id,
            nome=inscricao.nome,
            email=inscricao.email,
            telefone=inscricao.telefone,
            disponibilidade=dados.get('availability') or {},
            ministerios=[],
        )
        db.session.add(voluntario)

    if voluntario.membro_id is None:
        membro = None
        if inscricao.email:
            membro = Membro.query.filter_by(igreja_id=inscricao.igreja_id, email=inscricao.email).first()
        if membro is None:
            membro = Membro(igreja_id=inscricao.igreja_id, nome=inscricao.nome, email=inscricao.email,
                            telefone=inscricao.telefone, papel='Voluntário', status='Ativo')
            db.session.add(membro)
        db.session.flush()
        voluntario.membro_id = membro.id

    db.session.flush()
    return voluntario


def _incluir_no_ministerio(ministerio, voluntario, acao, detalhes, usuario):
    ids = ids_de(ministerio.dados.get('volunteer_ids'))
    if voluntario.id not in ids:
        ids.append(voluntario.id)
    dados = atualizar_dados(ministerio.form_data, volunteer_ids=ids)
    ministerio.form_data = adicionar_atividade(dados, acao, detalhes, usuario)

    ministerios = voluntario.ministerio_ids
    if ministerio.id not in ministerios:
        voluntario.ministerios = ministerios + [ministerio.id]


def aprovar_voluntario(ministerio, inscricao, usuario):
    if inscricao.papel != PAPEL_VOLUNTARIO:
        raise ValueError('Inscrição do voluntário não encontrada.')
    pendentes = ids_de(inscricao.dados.get('assigned_ministry_ids'))
    if ministerio.id not in pendentes:
        raise ValueError('Este voluntário não aguarda aprovação deste ministério.')

    voluntario = _voluntario_da_inscricao(inscricao)
    _incluir_no_ministerio(ministerio, voluntario, 'volunteer_approved',
                           f'Voluntário {inscricao.nome} foi aprovado.', usuario)

    restantes = [i for i in pendentes if i != ministerio.id]
    inscricao.form_data = atualizar_dados(inscricao.form_data, assigned_ministry_ids=restantes,
                                          voluntario_id=voluntario.id)
    inscricao.status = 'Alocado' if not restantes else STATUS_AGUARDANDO_LIDER

    db.session.commit()
    current_app.logger.info(f'Voluntário {voluntario.id} aprovado no ministério {ministerio.id}')
    return voluntario


def recusar_voluntario(ministerio, inscricao, motivo, usuario):
    if not motivo or not motivo.strip():
        raise ValueError('A justificativa é necessária para recusar o voluntário.')
    inscricao.form_data = adicionar_atividade(
        atualizar_dados(inscricao.form_data, assigned_ministry_ids=[], rejection_reason=motivo.strip(),
                        rejected_by_ministry=ministerio.nome),
        'rejected', f'Recusado pelo ministério {ministerio.nome}: "{motivo.strip()}"', usuario,
    )
    inscricao.status = 'Com Retorno'
    db.session.commit()


def adicionar_voluntario(ministerio, voluntario, usuario):
    if voluntario.id in ids_de(ministerio.dados.get('volunteer_ids')):
        raise ValueError(f'{voluntario.nome} já faz parte deste ministério.')
    _incluir_no_ministerio(ministerio, voluntario, 'volunteer_added',
                           f'Voluntário {voluntario.nome} adicionado.', usuario)
    db.session.commit()


def remover_voluntario(ministerio, voluntario, usuario, detalhes=None, confirmar=True):
    ids = ids_de(ministerio.dados.get('volunteer_ids'))
    if voluntario.id not in ids:
        raise ValueError(f'{voluntario.nome} não faz parte deste ministério.')
    dados = atualizar_dados(ministerio.form_data, volunteer_ids=[i for i in ids if i != voluntario.id])
    ministerio.form_data = adicionar_atividade(dados, 'volunteer_removed',
                                               detalhes or f'Voluntário {voluntario.nome} removido.', usuario)
    voluntario.ministerios = [i for i in voluntario.ministerio_ids if i != ministerio.id]
    if confirmar:
        db.session.commit()


def transferir_voluntario(origem, destino, voluntario, usuario):
    """Remove da origem e abre nova inscrição aguardando o líder do destino."""
    if origem.id == destino.id:
        raise ValueError('Selecione um ministério de destino diferente do atual.')
    remover_voluntario(origem, voluntario, usuario,
                       detalhes=f'Voluntário {voluntario.nome} transferido para {destino.nome}.', confirmar=False)

    inscricao = RegistroPendente(
        igreja_id=origem.igreja_id,
        nome=voluntario.nome,
        email=voluntario.email,
        telefone=voluntario.telefone,
        papel=PAPEL_VOLUNTARIO,
        status=STATUS_AGUARDANDO_LIDER,
        form_data={
            'voluntario_id': voluntario.id,
            'availability': voluntario.disponibilidade_dict,
            'assigned_ministry_ids': [destino.id],
            'transferred_from': origem.nome,
            'activities': [nova_atividade('transferred', f'Transferido de {origem.nome} para {destino.nome}.', usuario)],
        },
    )
    db.session.add(inscricao)
    db.session.commit()
    return inscricao


def excluir_ministerio(ministerio):
    for voluntario in voluntarios_do_ministerio(ministerio):
        voluntario.ministerios = [i for i in voluntario.ministerio_ids if i != ministerio.id]
    for inscricao in inscricoes_aguardando(ministerio):
        restantes = [i for i in ids_de(inscricao.dados.get('assigned_ministry_ids')) if i != ministerio.id]
        inscricao.form_data = atualizar_dados(inscricao.form_data, assigned_ministry_ids=restantes)
        if not restantes:
            inscricao.status = 'Pendente'
    EscalaVoluntario.query.filter_by(ministerio_id=ministerio.id).delete()
    db.session.delete(ministerio)
    db.session.commit()
