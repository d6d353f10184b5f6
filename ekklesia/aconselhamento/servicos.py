"""Regras dos atendimentos de aconselhamento.

Atendimentos são ``RegistroPendente`` com papel ``Conselheiro``; os dados do
atendimento (conselheiro, solicitante, data, encontros, atividades) ficam em
``form_data``. Erros de regra de negócio são levantados como ``ValueError``
com mensagem pronta para o usuário.
"""
import re
import uuid
from datetime import datetime

from flask import current_app
from markupsafe import escape
from email_validator import validate_email, EmailNotValidError
from sqlalchemy import func
from config import Config
from ekklesia.extensions import db
from ekklesia.registros.models import RegistroPendente, PAPEL_AGENDAMENTO
from ekklesia.registros.dados import adicionar_atividade, atualizar_dados, parse_data_hora, data_hora_iso, agora_igreja
from ekklesia.comunicacao.integracoes import ErroIntegracao, enviar_email, registrar_e_enviar_whatsapp
from .models import Conselheiro
from .agenda import horario_disponivel

STATUS_DUPLICIDADE = Config.STATUS_AGENDAMENTO_ATIVOS + ['Na Fila']
STATUS_ALTERAVEIS = ['Em Aconselhamento', 'Concluído', 'Cancelado', 'Não houve retorno']


def email_valido(email):
    if not email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def so_digitos(telefone):
    return re.sub(r'\D', '', telefone or '')


def agendamentos_da_igreja(igreja_id, status=None):
    query = RegistroPendente.query.filter_by(igreja_id=igreja_id, papel=PAPEL_AGENDAMENTO)
    if status:
        query = query.filter(RegistroPendente.status.in_(status))
    return query.order_by(RegistroPendente.created_at.desc()).all()


def agendamentos_do_conselheiro(igreja_id, conselheiro_id, status=None, ignorar_id=None):
    """Atendimentos de um conselheiro; o filtro em ``form_data`` é feito em Python."""
    status = status or Config.STATUS_AGENDAMENTO_ATIVOS
    return [
        ag for ag in agendamentos_da_igreja(igreja_id, status)
        if str(ag.dados.get('counselor_id')) == str(conselheiro_id) and ag.id != ignorar_id
    ]


def buscar_duplicado(igreja_id, nome, email, telefone):
    candidatos = RegistroPendente.query.filter(
        RegistroPendente.igreja_id == igreja_id,
        func.lower(RegistroPendente.nome) == nome.lower(),
        RegistroPendente.papel == PAPEL_AGENDAMENTO,
        RegistroPendente.status.in_(STATUS_DUPLICIDADE),
    ).all()
    for ag in candidatos:
        if email and (ag.email or '').lower() == email.lower():
            return ag
        if so_digitos(telefone) and so_digitos(ag.dados.get('member_phone')) == so_digitos(telefone):
            return ag
    return None


def mensagem_notificacao_agendamento(nome_conselheiro, nome_membro, quando):
    primeiro_nome = (nome_conselheiro or '').split(' ')[0]
    return (
        f'Olá, {primeiro_nome}! Você recebeu uma nova solicitação de atendimento de '
        f'{nome_membro} para {quando.strftime("%d/%m/%Y")} às {quando.strftime("%H:%M")}. '
        'Acesse o Ekklesia Hub para confirmar o horário.'
    )


def _data_do_atendimento(data, horario):
    try:
        return datetime.strptime(f'{data.isoformat()} {horario}', '%Y-%m-%d %H:%M')
    except (AttributeError, ValueError):
        raise ValueError('Data ou horário inválido.')


def criar_agendamento(igreja, solicitante, topico, conselheiro=None, data=None, horario=None,
                      fila=False, status=None, usuario=None, detalhes_atividade=None, verificar_duplicado=True):
    """Cria um atendimento.

    ``solicitante`` é um dict com ``nome``, ``email``, ``telefone`` e os campos
    opcionais ``estado_civil``, ``idade``, ``genero`` e ``detalhes``.
    Atendimentos de fila ficam com status ``Na Fila`` e sem conselheiro.
    """
    nome = (solicitante.get('nome') or '').strip()
    email = (solicitante.get('email') or '').strip()
    telefone = (solicitante.get('telefone') or '').strip()
    if not nome or not email or not telefone or not topico:
        raise ValueError('Preencha pelo menos nome, e-mail, telefone e o tópico antes de continuar.')

    if not fila and (conselheiro is None or not data or not horario):
        raise ValueError('Preencha todos os campos antes de confirmar.')

    if verificar_duplicado and buscar_duplicado(igreja.id, nome, email, telefone):
        raise ValueError('Você já possui um agendamento ou está na fila de espera. Nossa equipe entrará em contato em breve.')

    if fila:
        quando = agora_igreja().replace(second=0, microsecond=0)
    else:
        quando = _data_do_atendimento(data, horario)
        ocupados = agendamentos_do_conselheiro(igreja.id, conselheiro.id)
        if not horario_disponivel(conselheiro.disponibilidade, ocupados, data, horario):
            raise ValueError('O horário selecionado não está disponível para este conselheiro.')

    form_data = {
        'counselor_id': None if fila else conselheiro.id,
        'counselor_name': None if fila else conselheiro.nome,
        'counselor_email': None if fila else conselheiro.email,
        'counselor_phone': None if fila else conselheiro.telefone,
        'member_name': nome,
        'member_email': email,
        'member_phone': telefone,
        'member_marital_status': solicitante.get('estado_civil'),
        'member_age': solicitante.get('idade'),
        'member_gender': solicitante.get('genero'),
        'topic': topico,
        'date': data_hora_iso(quando),
        'details': solicitante.get('detalhes'),
        'meetings': [],
        'activities': [],
    }
    form_data = adicionar_atividade(
        form_data, 'created',
        detalhes_atividade or 'Solicitação de atendimento recebida através do formulário público.',
        usuario,
    )

    agendamento = RegistroPendente(
        igreja_id=igreja.id,
        nome=nome,
        email=email,
        telefone=telefone,
        papel=PAPEL_AGENDAMENTO,
        status=status or ('Na Fila' if fila else 'Pendente'),
        form_data=form_data,
    )
    db.session.add(agendamento)
    db.session.commit()
    current_app.logger.info(f'Atendimento {agendamento.id} criado ({agendamento.status}) na igreja {igreja.id}')
    return agendamento


def notificar_solicitante(igreja, agendamento):
    """Envia o e-mail de confirmação. Devolve False quando o envio falha."""
    d = agendamento.dados
    if not email_valido(d.get('member_email')):
        return False

    if agendamento.status == 'Na Fila':
        assunto = f'Confirmação de Fila de Espera - {igreja.nome}'
        corpo = (
            f"<h1>Olá, {escape(d.get('member_name'))}!</h1>"
            f'<p>Recebemos sua solicitação de atendimento pastoral na igreja {escape(igreja.nome)}.</p>'
            '<p>No momento, não há conselheiros disponíveis para o tópico/horário selecionado, '
            'mas colocamos você em nossa <strong>fila de espera</strong>.</p>'
            '<p>Assim que um conselheiro estiver disponível para assumir seu caso, você será notificado por e-mail.</p>'
        )
    else:
        quando = parse_data_hora(d.get('date'))
        assunto = f'Confirmação de Agendamento - {igreja.nome}'
        corpo = (
            f"<h1>Olá, {escape(d.get('member_name'))}!</h1>"
            f'<p>Recebemos seu pedido de agendamento de atendimento pastoral na igreja {escape(igreja.nome)}.</p>'
            f"<p><strong>Assunto:</strong> {escape(d.get('topic'))}</p>"
            f"<p><strong>Conselheiro(a):</strong> {escape(d.get('counselor_name'))}</p>"
            f"<p><strong>Data e Hora Solicitada:</strong> {quando.strftime('%d/%m/%Y às %H:%M') if quando else ''}</p>"
            '<p>Seu pedido está pendente de aprovação. Você receberá um novo e-mail assim que o conselheiro(a) confirmar o horário.</p>'
        )

    try:
        enviar_email(d.get('member_email'), assunto, corpo)
        return True
    except ErroIntegracao as e:
        current_app.logger.warning(f'E-mail de confirmação do atendimento {agendamento.id} não enviado: {e}')
        return False


def notificar_conselheiro(igreja_id, agendamento):
    """WhatsApp para o conselheiro com registro no histórico de mensagens."""
    d = agendamento.dados
    if not d.get('counselor_phone'):
        return None
    quando = parse_data_hora(d.get('date'))
    if quando is None:
        return None
    mensagem = mensagem_notificacao_agendamento(d.get('counselor_name'), d.get('member_name'), quando)
    return registrar_e_enviar_whatsapp(
        igreja_id,
        d.get('counselor_name'),
        d.get('counselor_phone'),
        mensagem,
        enviado_por='System',
        campanha_id=f'booking-{agendamento.id}-{uuid.uuid4().hex[:8]}',
    )


def _enviar_emails(mensagens):
    """Envia ``(para, assunto, corpo)`` ignorando endereços inválidos."""
    falhas = []
    for para, assunto, corpo in mensagens:
        if not email_valido(para):
            current_app.logger.warning(f'E-mail ignorado, endereço inválido: {para}')
            continue
        try:
            enviar_email(para, assunto, corpo)
        except ErroIntegracao as e:
            falhas.append(str(e))
    return falhas


def alterar_status(agendamento, novo_status, usuario, motivo=None):
    if novo_status not in STATUS_ALTERAVEIS:
        raise ValueError(f'Status inválido: {novo_status}')

    if novo_status == 'Cancelado':
        if not motivo or not motivo.strip():
            raise ValueError('Informe o motivo do cancelamento.')
        dados = adicionar_atividade(agendamento.form_data, 'canceled',
                                    f'Atendimento cancelado pelo motivo: "{motivo.strip()}".', usuario)
        dados['cancellation_reason'] = motivo.strip()
    else:
        dados = adicionar_atividade(agendamento.form_data, 'status_change',
                                    f'Status alterado para "{novo_status}"', usuario)

    agendamento.status = novo_status
    agendamento.form_data = dados
    db.session.commit()

    falhas = []
    if novo_status == 'Cancelado':
        falhas = _enviar_emails([
            (dados.get('member_email'), 'Seu atendimento pastoral foi cancelado',
             f"<p>Olá, {escape(dados.get('member_name'))}.</p><p>Informamos que seu atendimento pastoral foi cancelado.</p>"
             f'<p><strong>Motivo:</strong> {escape(motivo.strip())}</p>'),
            (dados.get('counselor_email'), f"Atendimento cancelado: {dados.get('member_name')}",
             f"<p>Olá, {escape(dados.get('counselor_name'))}.</p><p>O atendimento com {escape(dados.get('member_name'))} foi cancelado.</p>"
             f'<p><strong>Motivo:</strong> {escape(motivo.strip())}</p>'),
        ])
    return falhas


def confirmar(agendamento, usuario):
    if agendamento.status != 'Pendente':
        raise ValueError('Apenas atendimentos pendentes podem ser confirmados.')
    agendamento.status = 'Marcado'
    agendamento.form_data = adicionar_atividade(agendamento.form_data, 'status_change', 'Status alterado para "Marcado"', usuario)
    db.session.commit()


def reagendar(agendamento, data, horario, usuario):
    d = agendamento.dados
    conselheiro = db.session.get(Conselheiro, int(d['counselor_id'])) if d.get('counselor_id') else None
    if conselheiro is None:
        raise ValueError('Não foi possível carregar a disponibilidade do conselheiro.')

    quando = _data_do_atendimento(data, horario)
    ocupados = agendamentos_do_conselheiro(agendamento.igreja_id, conselheiro.id, ignorar_id=agendamento.id)
    if not horario_disponivel(conselheiro.disponibilidade, ocupados, data, horario):
        raise ValueError('O horário selecionado não está disponível.')

    texto = quando.strftime('%d/%m/%Y às %H:%M')
    dados = adicionar_atividade(agendamento.form_data, 'rescheduled', f'Atendimento reagendado para {texto}.', usuario)
    dados['date'] = data_hora_iso(quando)
    agendamento.form_data = dados
    db.session.commit()

    return _enviar_emails([
        (dados.get('member_email'), 'Seu atendimento foi reagendado',
         f"<p>Olá, {escape(dados.get('member_name'))}.</p><p>Seu atendimento pastoral foi reagendado para <strong>{texto}</strong>.</p>"),
        (dados.get('counselor_email'), f"Atendimento reagendado: {dados.get('member_name')}",
         f"<p>Olá, {escape(dados.get('counselor_name'))}.</p><p>O atendimento com <strong>{escape(dados.get('member_name'))}</strong> "
         f'foi reagendado para <strong>{texto}</strong>.</p>'),
    ])


def transferir(agendamento, novo_conselheiro, motivo, usuario):
    if not motivo or not motivo.strip():
        raise ValueError('Selecione o novo conselheiro e informe a justificativa.')
    d = agendamento.dados
    if str(d.get('counselor_id')) == str(novo_conselheiro.id):
        raise ValueError('O atendimento já está com este conselheiro.')

    dados = adicionar_atividade(
        agendamento.form_data, 'transferred',
        f"Atendimento transferido de {d.get('counselor_name')} para {novo_conselheiro.nome}. Motivo: \"{motivo.strip()}\"",
        usuario,
    )
    dados.update({
        'counselor_id': novo_conselheiro.id,
        'counselor_name': novo_conselheiro.nome,
        'counselor_email': novo_conselheiro.email,
        'counselor_phone': novo_conselheiro.telefone,
    })
    agendamento.form_data = dados
    agendamento.status = 'Marcado'
    db.session.commit()


def atribuir_da_fila(agendamento, conselheiro, data, horario, usuario):
    if agendamento.status != 'Na Fila':
        raise ValueError('Este atendimento não está na fila de espera.')

    quando = _data_do_atendimento(data, horario)
    ocupados = agendamentos_do_conselheiro(agendamento.igreja_id, conselheiro.id)
    if not horario_disponivel(conselheiro.disponibilidade, ocupados, data, horario):
        raise ValueError('O horário selecionado não está disponível para este conselheiro.')

    dados = adicionar_atividade(
        agendamento.form_data, 'assigned_counselor',
        f"Atendimento atribuído a {conselheiro.nome} para {quando.strftime('%d/%m/%Y às %H:%M')}.",
        usuario,
    )
    dados.update({
        'counselor_id': conselheiro.id,
        'counselor_name': conselheiro.nome,
        'counselor_email': conselheiro.email,
        'counselor_phone': conselheiro.telefone,
        'date': data_hora_iso(quando),
    })
    agendamento.form_data = dados
    agendamento.status = 'Marcado'
    db.session.commit()

    return _enviar_emails([
        (dados.get('member_email'), 'Seu atendimento pastoral foi agendado',
         f"<p>Olá, {escape(dados.get('member_name'))}.</p><p>Seu atendimento com {escape(conselheiro.nome)} foi marcado para "
         f"<strong>{quando.strftime('%d/%m/%Y às %H:%M')}</strong>.</p>"),
    ])


def salvar_encontro(agendamento, usuario, data, assunto, anotacoes, proximos_passos='', confidencial=False, encontro_id=None):
    if not assunto or not anotacoes:
        raise ValueError('Preencha o assunto e as anotações.')

    dados = agendamento.dados
    encontros = list(dados.get('meetings') or [])
    data_txt = data.isoformat() if hasattr(data, 'isoformat') else str(data)

    if encontro_id:
        alvo = next((m for m in encontros if m.get('id') == encontro_id), None)
        if alvo is None:
            raise ValueError('Encontro não encontrado.')
        if alvo.get('recordedById') != usuario.id:
            raise ValueError('Apenas quem registrou o encontro pode editá-lo.')
        encontros = [
            {**m, 'date': data_txt, 'topic': assunto, 'notes': anotacoes,
             'nextSteps': proximos_passos, 'isConfidential': bool(confidencial)}
            if m.get('id') == encontro_id else m
            for m in encontros
        ]
        acao, verbo = 'edit_meeting', 'atualizado'
    else:
        encontros.append({
            'id': f'meeting-{uuid.uuid4().hex[:12]}',
            'date': data_txt,
            'topic': assunto,
            'notes': anotacoes,
            'nextSteps': proximos_passos,
            'recordedBy': usuario.nome,
            'recordedById': usuario.id,
            'isConfidential': bool(confidencial),
        })
        acao, verbo = 'add_meeting', 'registrado'

    dados = adicionar_atividade(atualizar_dados(dados, meetings=encontros), acao,
                                f'Atendimento sobre "{assunto}" {verbo}.', usuario)
    agendamento.form_data = dados
    db.session.commit()


def pode_ver_confidencial(usuario, encontro):
    if usuario.acesso_total or usuario.papel == 'Administrador':
        return True
    return usuario.id == encontro.get('recordedById')


def registrar_contato_whatsapp(agendamento, usuario):
    dados = adicionar_atividade(agendamento.form_data, 'whatsapp_contact',
                                f'Tentativa de contato via WhatsApp com {agendamento.nome}', usuario)
    agendamento.form_data = dados
    db.session.commit()
    return f'https://wa.me/{so_digitos(dados.get("member_phone"))}'
