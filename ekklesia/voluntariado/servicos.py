from collections import Counter, OrderedDict
from datetime import datetime, timezone, date

from flask import current_app
from config import Config
from ekklesia.extensions import db
from ekklesia.registros.models import RegistroPendente, PAPEL_VOLUNTARIO
from ekklesia.registros.dados import adicionar_atividade, atualizar_dados, ids_de, nova_atividade
from ekklesia.ministerios.servicos import STATUS_AGUARDANDO_LIDER, voluntarios_do_ministerio
from ekklesia.comunicacao.integracoes import registrar_e_enviar_whatsapp
from .models import Voluntario, EscalaVoluntario
from .escalas import gerar_escala, mensagem_escala


def inscricoes_da_igreja(igreja_id, status=None):
    query = RegistroPendente.query.filter_by(igreja_id=igreja_id, papel=PAPEL_VOLUNTARIO)
    if status:
        query = query.filter(RegistroPendente.status.in_(status))
    return query.order_by(RegistroPendente.created_at.desc()).all()


def criar_inscricao(igreja_id, nome, email, telefone, ministerios_interesse=None, disponibilidade=None,
                    observacoes=None, usuario=None, origem='Formulário público'):
    if not nome or not (email or telefone):
        raise ValueError('Informe o nome e um contato (e-mail ou telefone).')

    inscricao = RegistroPendente(
        igreja_id=igreja_id,
        nome=nome.strip(),
        email=email or None,
        telefone=telefone or None,
        papel=PAPEL_VOLUNTARIO,
        status='Pendente',
        form_data={
            'ministry_interests': ids_de(ministerios_interesse),
            'availability': disponibilidade or {},
            'notes': observacoes or '',
            'source': origem,
            'assigned_ministry_ids': [],
            'activities': [nova_atividade('created', f'Inscrição recebida ({origem}).', usuario)],
        },
    )
    db.session.add(inscricao)
    db.session.commit()
    return inscricao


def atribuir_ministerios(inscricao, ministerio_ids, usuario):
    ids = ids_de(ministerio_ids)
    if not ids:
        raise ValueError('Selecione ao menos um ministério.')
    dados = atualizar_dados(inscricao.form_data, assigned_ministry_ids=ids)
    dados.pop('rejection_reason', None)
    dados.pop('rejected_by_ministry', None)
    inscricao.form_data = adicionar_atividade(dados, 'assigned_ministry',
                                              f'Encaminhado para aprovação de {len(ids)} ministério(s).', usuario)
    inscricao.status = STATUS_AGUARDANDO_LIDER
    db.session.commit()


def atualizar_status(inscricoes, status, usuario):
    if status not in Config.STATUS_VOLUNTARIO:
        raise ValueError(f'Status inválido: {status}')
    for inscricao in inscricoes:
        inscricao.form_data = adicionar_atividade(inscricao.form_data, 'status_change',
                                                  f'Status alterado para "{status}"', usuario)
        inscricao.status = status
    db.session.commit()
    return len(inscricoes)


def resumo_painel(igreja_id, meses=6):
    inscricoes = inscricoes_da_igreja(igreja_id)
    por_status = Counter(i.status for i in inscricoes)

    hoje = date.today()
    serie = OrderedDict()
    for n in range(meses - 1, -1, -1):
        ano_ = hoje.year + (hoje.month - 1 - n) // 12
        mes_ = (hoje.month - 1 - n) % 12 + 1
        serie[f'{ano_:04d}-{mes_:02d}'] = 0
    for v in Voluntario.query.filter_by(igreja_id=igreja_id).all():
        if v.created_at:
            chave = v.created_at.strftime('%Y-%m')
            if chave in serie:
                serie[chave] += 1

    return {
        'total_voluntarios': Voluntario.query.filter_by(igreja_id=igreja_id).count(),
        'novos': por_status['Pendente'],
        'alocados': por_status['Alocado'],
        'aguardando_lider': por_status[STATUS_AGUARDANDO_LIDER],
        'com_retorno': por_status['Com Retorno'],
        'por_status': dict(por_status),
        'por_mes': serie,
    }


def obter_escala(igreja_id, ministerio_id, mes):
    return EscalaVoluntario.query.filter_by(igreja_id=igreja_id, ministerio_id=ministerio_id, mes=mes).first()


def gerar_escala_ministerio(ministerio, mes):
    voluntarios = voluntarios_do_ministerio(ministerio)
    if not voluntarios:
        raise ValueError('Não há voluntários com disponibilidade cadastrada para este ministério.')
    return gerar_escala(voluntarios, mes)


def salvar_escala(ministerio, mes, semanas, aprovada=True):
    """Grava a escala do mês; uma linha por igreja, ministério e mês."""
    escala = obter_escala(ministerio.igreja_id, ministerio.id, mes)
    if escala is None:
        escala = EscalaVoluntario(igreja_id=ministerio.igreja_id, ministerio_id=ministerio.id, mes=mes)
        db.session.add(escala)
    escala.nome_ministerio = ministerio.nome
    escala.dados_escala = list(semanas)
    escala.aprovada = aprovada
    db.session.commit()
    return escala


def enviar_escala(escala, ministerio, enviado_por):
    """Envia a escala por WhatsApp aos voluntários escalados. Devolve (enviadas, total)."""
    semanas = escala.semanas
    escalados = {n for s in semanas for n in (s.get('morningVolunteers') or []) + (s.get('eveningVolunteers') or [])}
    destinatarios = [v for v in voluntarios_do_ministerio(ministerio) if v.nome in escalados and v.telefone]
    mensagem = mensagem_escala(ministerio.nome, semanas)

    enviadas = 0
    for v in destinatarios:
        historico = registrar_e_enviar_whatsapp(escala.igreja_id, v.nome, v.telefone, mensagem, enviado_por,
                                                campanha_id=f'escala-{escala.id}-{escala.mes}')
        if historico.status == 'sent':
            enviadas += 1

    escala.enviada_em = datetime.now(timezone.utc)
    db.session.commit()
    current_app.logger.info(f'Escala {escala.id} enviada: {enviadas}/{len(destinatarios)}')
    return enviadas, len(destinatarios)
