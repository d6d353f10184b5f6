"""Acompanhamento de quem tomou uma decisão ("novo começo").

Cada ação acrescenta uma entrada em ``atividades`` com a chave da ação
(``ownership_taken``, ``contact_registered``, ``sent_to_counseling``...).
"""
import uuid
from datetime import datetime, timezone

from flask import current_app
from config import Config
from ekklesia.extensions import db
from ekklesia.registros.dados import lista_de, nova_atividade
from ekklesia.registros.models import RegistroPendente, PAPEL_AGENDAMENTO
from ekklesia.registros.dados import data_hora_iso, agora_igreja
from ekklesia.membresia.models import Membro
from ekklesia.discipulado.servicos import criar_pendente
from ekklesia.voluntariado.servicos import criar_inscricao
from .models import NovoComeco


def _registrar(novo, acao, detalhes, usuario=None):
    novo.atividades = lista_de(novo.atividades) + [nova_atividade(acao, detalhes, usuario)]


def criar_novo_comeco(igreja_id, nome, telefone=None, email=None, culto=None, pequeno_grupo_id=None,
                      interesses=None, detalhes=None, usuario=None):
    if not nome or not nome.strip():
        raise ValueError('Informe o nome.')
    validos = {i['key'] for i in Config.INTERESSES_ACOLHIMENTO}
    novo = NovoComeco(
        igreja_id=igreja_id,
        nome=nome.strip(),
        telefone=telefone or None,
        email=email or None,
        culto_decisao=culto or None,
        pequeno_grupo_id=pequeno_grupo_id or None,
        status='Pendente',
        interesses=[i for i in (interesses or []) if i in validos],
        detalhes_pedido=detalhes or {},
        acompanhamentos=[],
        atividades=[],
        criado_por=usuario.nome if usuario is not None and getattr(usuario, 'is_authenticated', False) else 'Formulário público',
    )
    _registrar(novo, 'created', 'Registro recebido.', usuario)
    db.session.add(novo)
    db.session.commit()
    return novo


def assumir(novo, usuario):
    novo.acompanhante_id = usuario.id
    novo.acompanhante_nome = usuario.nome
    novo.status = 'Em acolhimento'
    _registrar(novo, 'ownership_taken', f'{usuario.nome} assumiu o acompanhamento.', usuario)
    db.session.commit()


def registrar_contato(novo, anotacoes, usuario):
    if not anotacoes or not anotacoes.strip():
        raise ValueError('Escreva o comentário do contato.')
    novo.acompanhamentos = lista_de(novo.acompanhamentos) + [{
        'id': f'contact-{uuid.uuid4().hex[:12]}',
        'contact_date': datetime.now(timezone.utc).isoformat(),
        'notes': anotacoes.strip(),
        'contacted_by': usuario.nome,
    }]
    if not novo.acompanhante_id:
        novo.acompanhante_id = usuario.id
        novo.acompanhante_nome = usuario.nome
    _registrar(novo, 'contact_registered', f'Comentário registrado: "{anotacoes.strip()[:50]}..."', usuario)
    db.session.commit()


def alterar_status(novo, status, usuario):
    if status not in Config.STATUS_ACOLHIMENTO:
        raise ValueError(f'Status inválido: {status}')
    novo.status = status
    _registrar(novo, 'status_change', f'Status alterado para "{status}".', usuario)
    db.session.commit()


def marcar_batizado(novo, usuario):
    if not novo.tem_interesse('baptism'):
        raise ValueError('Este registro não possui interesse em batismo.')
    novo.interesses = [i for i in novo.lista_interesses if i != 'baptism']
    _registrar(novo, 'marked_as_baptized', f'{novo.nome} foi marcado(a) como batizado(a).', usuario)
    db.session.commit()


def enviar_para_aconselhamento(novo, usuario):
    if novo.encaminhado_aconselhamento:
        raise ValueError('Este registro já foi enviado para o aconselhamento.')
    d = novo.detalhes
    agendamento = RegistroPendente(
        igreja_id=novo.igreja_id,
        nome=novo.nome,
        email=novo.email,
        telefone=novo.telefone,
        papel=PAPEL_AGENDAMENTO,
        status='Na Fila',
        form_data={
            'counselor_id': None,
            'member_name': novo.nome,
            'member_email': novo.email,
            'member_phone': novo.telefone,
            'member_gender': d.get('gender'),
            'member_age': d.get('member_age'),
            'member_marital_status': d.get('maritalStatus'),
            'topic': d.get('counseling_topics') or 'Não especificado',
            'details': 'Enviado diretamente do Acolhimento.',
            'source': 'Acolhimento',
            'date': data_hora_iso(agora_igreja()),
            'meetings': [],
            'activities': [nova_atividade('created', 'Solicitação de atendimento recebida do Acolhimento.')],
        },
    )
    db.session.add(agendamento)
    novo.encaminhado_aconselhamento = True
    novo.status = 'Direcionado'
    _registrar(novo, 'sent_to_counseling', 'Enviado para a Fila de Espera de Aconselhamento.', usuario)
    db.session.commit()
    return agendamento


def _membro_para(novo):
    membro = None
    if novo.email:
        membro = Membro.query.filter_by(igreja_id=novo.igreja_id, email=novo.email).first()
    if membro is None and novo.telefone:
        membro = Membro.query.filter_by(igreja_id=novo.igreja_id, telefone=novo.telefone).first()
    if membro is None:
        membro = Membro(igreja_id=novo.igreja_id, nome=novo.nome, email=novo.email, telefone=novo.telefone,
                        papel='Membro', status='Ativo')
        db.session.add(membro)
        db.session.flush()
    return membro


def enviar_para_discipulado(novo, usuario):
    if any(a.get('action') == 'sent_to_discipleship' for a in lista_de(novo.atividades) if isinstance(a, dict)):
        raise ValueError('Este registro já foi enviado para o discipulado.')
    membro = _membro_para(novo)
    novo.status = 'Direcionado'
    _registrar(novo, 'sent_to_discipleship', 'Enviado para a Central de Discipulado.', usuario)
    relacao = criar_pendente(novo.igreja_id, f'Discipulado de {novo.nome}', novo.email, novo.telefone,
                             'Acolhimento', detalhes=novo.detalhes, discipulo_id=membro.id, usuario=usuario)
    current_app.logger.info(f'Novo começo {novo.id} enviado ao discipulado ({relacao.id})')
    return relacao


def enviar_para_voluntariado(novo, usuario):
    novo.status = 'Direcionado'
    _registrar(novo, 'sent_to_volunteer_hub', 'Enviado para a Central de Voluntários.', usuario)
    return criar_inscricao(novo.igreja_id, novo.nome, novo.email, novo.telefone,
                           usuario=usuario, origem='Acolhimento')


def interessados_em_grupo(igreja_id):
    registros = NovoComeco.query.filter_by(igreja_id=igreja_id).order_by(NovoComeco.created_at.desc()).all()
    return [n for n in registros if n.tem_interesse('growth_group')]


def atividades_para_exibir(novo):
    atividades = [a for a in lista_de(novo.atividades) if isinstance(a, dict)]
    if novo.tem_interesse('growth_group') and not any(a.get('action') == 'sent_to_small_group' for a in atividades):
        atividades.append({
            'id': 'auto-sg-activity',
            'timestamp': novo.created_at.isoformat() if novo.created_at else '',
            'user': 'Sistema',
            'action': 'sent_to_small_group',
            'details': 'Enviado automaticamente para a Central de Pequenos Grupos',
        })
    return sorted(atividades, key=lambda a: a.get('timestamp') or '', reverse=True)
