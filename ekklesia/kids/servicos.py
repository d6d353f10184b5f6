from datetime import datetime, timezone, date

from ekklesia.extensions import db
from ekklesia.aconselhamento.servicos import so_digitos
from ekklesia.comunicacao.integracoes import registrar_e_enviar_whatsapp
from .models import Crianca, CheckinCrianca


def cadastrar_crianca(igreja_id, nome, data_nascimento, responsaveis, alergias=None, observacoes=None):
    if not nome or not nome.strip():
        raise ValueError('Informe o nome da criança.')
    responsaveis = [
        {'name': r.get('name', '').strip(), 'phone': r.get('phone', '').strip()}
        for r in responsaveis or [] if r.get('name') and r.get('phone')
    ]
    if not responsaveis:
        raise ValueError('Informe ao menos um responsável com telefone.')
    crianca = Crianca(
        igreja_id=igreja_id,
        nome=nome.strip(),
        data_nascimento=data_nascimento,
        responsaveis=responsaveis,
        alergias=alergias or None,
        observacoes=observacoes or None,
    )
    db.session.add(crianca)
    db.session.commit()
    return crianca


def criancas_do_responsavel(igreja_id, telefone):
    digitos = so_digitos(telefone)
    if len(digitos) < 10:
        raise ValueError('Por favor, insira um número de telefone válido com DDD.')
    return [
        c for c in Crianca.query.filter_by(igreja_id=igreja_id).order_by(Crianca.nome).all()
        if any(so_digitos(r.get('phone')) == digitos for r in c.lista_responsaveis)
    ]


def fazer_checkin(crianca, por):
    if crianca.checkin_aberto is not None:
        raise ValueError(f'{crianca.nome} já está com check-in ativo.')
    checkin = CheckinCrianca(igreja_id=crianca.igreja_id, crianca_id=crianca.id, checkin_por=por, status='CheckedIn')
    db.session.add(checkin)
    db.session.commit()
    return checkin


def fazer_checkout(crianca, por):
    checkin = crianca.checkin_aberto
    if checkin is None:
        raise ValueError(f'{crianca.nome} não está com check-in ativo.')
    checkin.status = 'CheckedOut'
    checkin.checkout_em = datetime.now(timezone.utc)
    checkin.checkout_por = por
    db.session.commit()
    return checkin


def presentes(igreja_id):
    return CheckinCrianca.query.filter_by(igreja_id=igreja_id, status='CheckedIn') \
        .order_by(CheckinCrianca.checkin_em).all()


def checkins_do_dia(igreja_id, dia=None):
    dia = dia or date.today()
    inicio = datetime(dia.year, dia.month, dia.day)
    return [c for c in CheckinCrianca.query.filter_by(igreja_id=igreja_id)
            .order_by(CheckinCrianca.checkin_em.desc()).all()
            if c.checkin_em.replace(tzinfo=None) >= inicio]


def avisar_responsavel(crianca, mensagem, usuario):
    if not mensagem or not mensagem.strip():
        raise ValueError('Escreva a mensagem.')
    responsavel = crianca.responsavel_principal
    if not responsavel or not responsavel.get('phone'):
        raise ValueError('Esta criança não possui responsável com telefone.')
    return registrar_e_enviar_whatsapp(
        crianca.igreja_id, responsavel.get('name'), responsavel['phone'], mensagem.strip(),
        enviado_por=usuario.nome, campanha_id=f'kids-{crianca.id}',
    )
