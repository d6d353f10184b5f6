"""Envio em massa, conversas e mensagens recebidas."""
import uuid

from flask import current_app
from ekklesia.extensions import db
from ekklesia.aconselhamento.servicos import so_digitos
from ekklesia.membresia.models import Membro, Visitante, PastorLider
from ekklesia.voluntariado.models import Voluntario
from ekklesia.acolhimento.models import NovoComeco
from ekklesia.ministerios.servicos import obter_ministerio, voluntarios_do_ministerio
from .models import HistoricoMensagem, MensagemRecebida, GrupoComunicacao
from .integracoes import enviar_whatsapp, ErroIntegracao

PUBLICOS = [
    ('all', 'Todos os contatos'),
    ('membros', 'Membros'),
    ('visitantes', 'Visitantes'),
    ('novos-convertidos', 'Novos convertidos'),
    ('voluntarios', 'Voluntários'),
    ('lideres', 'Pastores e líderes'),
]


def _contatos(linhas):
    return [{'nome': l.nome, 'telefone': l.telefone} for l in linhas if l.telefone]


def _sem_repetidos(contatos):
    vistos = set()
    resultado = []
    for c in contatos:
        chave = so_digitos(c['telefone'])
        if not chave or chave in vistos:
            continue
        vistos.add(chave)
        resultado.append(c)
    return resultado


def contatos_do_publico(igreja_id, publico):
    """Destinatários de um público.

    Além dos públicos fixos aceita ``grupo:<id>`` (grupo de comunicação) e
    ``ministerio:<id>`` (voluntários do ministério).
    """
    if publico in ('all', 'membros'):
        contatos = _contatos(Membro.query.filter_by(igreja_id=igreja_id).all())
        contatos += _contatos(Voluntario.query.filter_by(igreja_id=igreja_id).all())
        contatos += _contatos(Visitante.query.filter_by(igreja_id=igreja_id).all())
    elif publico == 'visitantes':
        contatos = _contatos(Visitante.query.filter_by(igreja_id=igreja_id).all())
    elif publico == 'novos-convertidos':
        contatos = _contatos(NovoComeco.query.filter_by(igreja_id=igreja_id).all())
    elif publico == 'voluntarios':
        contatos = _contatos(Voluntario.query.filter_by(igreja_id=igreja_id).all())
    elif publico == 'lideres':
        contatos = _contatos(PastorLider.query.filter_by(igreja_id=igreja_id).all())
    elif publico.startswith('grupo:'):
        grupo = GrupoComunicacao.query.filter_by(igreja_id=igreja_id, id=_id_do_publico(publico)).first()
        if grupo is None:
            raise ValueError('Grupo de comunicação não encontrado.')
        contatos = _contatos(grupo.membros.filter_by(ativo=True).all())
    elif publico.startswith('ministerio:'):
        ministerio = obter_ministerio(igreja_id, _id_do_publico(publico))
        if ministerio is None:
            raise ValueError('Ministério não encontrado.')
        contatos = _contatos(voluntarios_do_ministerio(ministerio))
    else:
        raise ValueError(f'Público inválido: {publico}')
    return _sem_repetidos(contatos)


def _id_do_publico(publico):
    try:
        return int(publico.split(':', 1)[1])
    except ValueError:
        raise ValueError(f'Público inválido: {publico}')


def personalizar(mensagem, nome):
    primeiro_nome = (nome or '').split(' ')[0]
    return mensagem.replace('{nome}', primeiro_nome)


def enviar_campanha(igreja_id, contatos, mensagem, enviado_por):
    """Grava uma linha ``pending`` por destinatário e só depois dispara os envios.

    Devolve ``(enviadas, falhas, campanha_id)``.
    """
    if not mensagem or not mensagem.strip():
        raise ValueError('Escreva a mensagem.')
    if not contatos:
        raise ValueError('Nenhum destinatário com telefone encontrado.')

    campanha_id = str(uuid.uuid4())
    registros = []
    for c in contatos:
        registro = HistoricoMensagem(
            igreja_id=igreja_id,
            nome_membro=c['nome'],
            telefone_membro=c['telefone'],
            corpo=personalizar(mensagem, c['nome']),
            status='pending',
            enviado_por=enviado_por,
            campanha_id=campanha_id,
        )
        db.session.add(registro)
        registros.append(registro)
    db.session.commit()

    enviadas = falhas = 0
    for registro in registros:
        try:
            enviar_whatsapp(registro.telefone_membro, registro.corpo)
            registro.status = 'sent'
            enviadas += 1
        except ErroIntegracao as e:
            registro.status = 'failed'
            registro.erro = str(e)
            falhas += 1
    db.session.commit()
    current_app.logger.info(f'Campanha {campanha_id}: {enviadas} enviada(s), {falhas} falha(s)')
    return enviadas, falhas, campanha_id


def conversas(igreja_id):
    """Mensagens recebidas e enviadas agrupadas por telefone, mais recente primeiro."""
    por_telefone = {}

    for msg in MensagemRecebida.query.filter_by(igreja_id=igreja_id).all():
        conversa = por_telefone.setdefault(so_digitos(msg.telefone), {
            'telefone': msg.telefone, 'nome': msg.nome_contato or msg.telefone,
            'ultima_mensagem': '', 'ultima_em': None, 'nao_lidas': 0,
        })
        if conversa['ultima_em'] is None or msg.recebida_em > conversa['ultima_em']:
            conversa.update(nome=msg.nome_contato or conversa['nome'], ultima_mensagem=msg.mensagem or '',
                            ultima_em=msg.recebida_em)
        if not msg.lida:
            conversa['nao_lidas'] += 1

    for msg in HistoricoMensagem.query.filter_by(igreja_id=igreja_id).all():
        conversa = por_telefone.setdefault(so_digitos(msg.telefone_membro), {
            'telefone': msg.telefone_membro, 'nome': msg.nome_membro or msg.telefone_membro,
            'ultima_mensagem': '', 'ultima_em': None, 'nao_lidas': 0,
        })
        if conversa['ultima_em'] is None or msg.created_at > conversa['ultima_em']:
            conversa.update(nome=msg.nome_membro or conversa['nome'], ultima_mensagem=f'Você: {msg.corpo or ""}',
                            ultima_em=msg.created_at)

    return sorted(por_telefone.values(), key=lambda c: c['ultima_em'], reverse=True)


def mensagens_da_conversa(igreja_id, telefone):
    digitos = so_digitos(telefone)
    mensagens = [
        {'direcao': 'recebida', 'texto': m.mensagem, 'em': m.recebida_em, 'nome': m.nome_contato, 'status': None}
        for m in MensagemRecebida.query.filter_by(igreja_id=igreja_id).all()
        if so_digitos(m.telefone) == digitos
    ]
    mensagens += [
        {'direcao': 'enviada', 'texto': m.corpo, 'em': m.created_at, 'nome': m.enviado_por, 'status': m.status}
        for m in HistoricoMensagem.query.filter_by(igreja_id=igreja_id).all()
        if so_digitos(m.telefone_membro) == digitos
    ]
    return sorted(mensagens, key=lambda m: m['em'])


def marcar_como_lidas(igreja_id, telefone):
    digitos = so_digitos(telefone)
    total = 0
    for m in MensagemRecebida.query.filter_by(igreja_id=igreja_id, lida=False).all():
        if so_digitos(m.telefone) == digitos:
            m.lida = True
            total += 1
    if total:
        db.session.commit()
    return total


def registrar_recebida(igreja_id, telefone, mensagem, nome=None, wa_message_id=None):
    if not telefone:
        raise ValueError('Telefone não informado.')
    if wa_message_id and MensagemRecebida.query.filter_by(wa_message_id=wa_message_id).first():
        return None
    recebida = MensagemRecebida(igreja_id=igreja_id, telefone=telefone, mensagem=mensagem,
                                nome_contato=nome, wa_message_id=wa_message_id, lida=False)
    db.session.add(recebida)
    db.session.commit()
    return recebida
