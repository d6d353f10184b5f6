"""Envio de WhatsApp (webhook) e e-mail (API do Resend)."""
import httpx
from flask import current_app
from ekklesia.extensions import db
from .models import HistoricoMensagem


class ErroIntegracao(Exception):
    pass


def enviar_whatsapp(telefone, mensagem):
    url = current_app.config.get('WHATSAPP_WEBHOOK_URL')
    if not url:
        raise ErroIntegracao('A URL do webhook de WhatsApp (WHATSAPP_WEBHOOK_URL) não foi configurada.')
    if not telefone:
        raise ErroIntegracao('Telefone do destinatário não informado.')

    try:
        resposta = httpx.post(
            url,
            json={'data': {'telefone': telefone, 'mensagem': mensagem}},
            timeout=current_app.config.get('TIMEOUT_INTEGRACOES', 15),
        )
    except httpx.HTTPError as e:
        current_app.logger.error(f'Erro na chamada do webhook de WhatsApp: {e}')
        raise ErroIntegracao(f'Falha ao contatar o webhook de WhatsApp: {e}') from e

    if not resposta.is_success:
        raise ErroIntegracao(f'Webhook Error: {resposta.reason_phrase} - {resposta.text}')

    return {'success': True, 'message': 'Mensagem enviada para a fila de processamento do webhook.'}


def enviar_email(para, assunto, corpo_html):
    chave = current_app.config.get('RESEND_API_KEY')
    if not chave:
        raise ErroIntegracao('A configuração de envio de e-mails (RESEND_API_KEY) não foi definida no servidor.')

    try:
        resposta = httpx.post(
            current_app.config['RESEND_API_URL'],
            headers={'Authorization': f'Bearer {chave}'},
            json={
                'from': current_app.config['EMAIL_REMETENTE'],
                'to': [para],
                'subject': assunto,
                'html': corpo_html,
            },
            timeout=current_app.config.get('TIMEOUT_INTEGRACOES', 15),
        )
    except httpx.HTTPError as e:
        current_app.logger.error(f'Erro ao enviar e-mail para {para}: {e}')
        raise ErroIntegracao(f'Failed to send email: {e}') from e

    if not resposta.is_success:
        raise ErroIntegracao(f'Failed to send email: {resposta.status_code} - {resposta.text}')

    return {'success': True, 'message': f'Email successfully sent to {para}.'}


def registrar_e_enviar_whatsapp(igreja_id, nome, telefone, mensagem, enviado_por, campanha_id=None):
    """Grava a mensagem no histórico como ``pending`` e tenta enviá-la.

    O status final fica ``sent`` ou ``failed``; a exceção de integração não é
    propagada, quem chama consulta ``historico.status``.
    """
    historico = HistoricoMensagem(
        igreja_id=igreja_id,
        nome_membro=nome,
        telefone_membro=telefone or '',
        corpo=mensagem,
        status='pending',
        enviado_por=enviado_por,
        campanha_id=campanha_id,
    )
    db.session.add(historico)
    db.session.commit()

    try:
        enviar_whatsapp(telefone, mensagem)
        historico.status = 'sent'
    except ErroIntegracao as e:
        current_app.logger.warning(f'Mensagem {historico.id} para {telefone} não enviada: {e}')
        historico.status = 'failed'
        historico.erro = str(e)

    db.session.commit()
    return historico
