from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_publica_or_404
from ekklesia.grupos.models import PequenoGrupo
from ekklesia.jornada.models import registrar_evento_jornada
from ekklesia.aconselhamento.servicos import so_digitos
from .models import NovoComeco
from .forms import NovoComecoForm, ContatoForm, StatusAcolhimentoForm
from . import servicos
from config import Config

acolhimento_bp = Blueprint('acolhimento', __name__, url_prefix='/acolhimento')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


@acolhimento_bp.route('/')
@login_required
@area_required('acolhimento')
def index():
    status = request.args.get('status', '')
    busca = request.args.get('busca', '').strip()
    query = consulta_igreja(NovoComeco)
    if status:
        query = query.filter(NovoComeco.status == status)
    if busca:
        query = query.filter(NovoComeco.nome.ilike(f'%{busca}%'))
    registros = query.order_by(NovoComeco.created_at.desc()).all()
    contagem = {s: 0 for s in Config.STATUS_ACOLHIMENTO}
    for n in consulta_igreja(NovoComeco).all():
        contagem[n.status] = contagem.get(n.status, 0) + 1
    return render_template('acolhimento/index.html', registros=registros, contagem=contagem,
                           status=status, busca=busca, todos_status=Config.STATUS_ACOLHIMENTO,
                           ano=ano, versao=versao)


@acolhimento_bp.route('/novo', methods=['GET', 'POST'])
@login_required
@area_required('acolhimento')
def novo():
    grupos = consulta_igreja(PequenoGrupo).order_by(PequenoGrupo.nome).all()
    form = NovoComecoForm(grupos=grupos)
    if form.validate_on_submit():
        try:
            registro = servicos.criar_novo_comeco(
                current_user.igreja_id, form.nome.data, form.telefone.data, form.email.data,
                form.culto.data, form.pequeno_grupo_id.data, form.interesses.data, form.detalhes(), current_user,
            )
            registrar_evento_jornada(
                tipo_acao='ACOLHIMENTO',
                descricao_detalhada=f'Cadastrou o novo começo de {registro.nome}.',
                usuario_executor=current_user,
                referencia=f'novo_comeco:{registro.id}',
            )
            flash('Registro criado com sucesso!', 'success')
            return redirect(url_for('acolhimento.detalhe', novo_id=registro.id))
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar registro: {e}', 'danger')
    return render_template('acolhimento/form.html', form=form, ano=ano, versao=versao)


@acolhimento_bp.route('/<int:novo_id>')
@login_required
@area_required('acolhimento')
def detalhe(novo_id):
    registro = obter_da_igreja_or_404(NovoComeco, novo_id)
    grupo = None
    if registro.pequeno_grupo_id:
        grupo = consulta_igreja(PequenoGrupo).filter(PequenoGrupo.id == registro.pequeno_grupo_id).first()
    acompanhamentos = sorted(registro.acompanhamentos or [], key=lambda c: c.get('contact_date') or '', reverse=True)
    return render_template(
        'acolhimento/detalhe.html',
        registro=registro, grupo=grupo, acompanhamentos=acompanhamentos,
        atividades=servicos.atividades_para_exibir(registro),
        contato_form=ContatoForm(), status_form=StatusAcolhimentoForm(status=registro.status),
        whatsapp=f'https://wa.me/{so_digitos(registro.telefone)}' if registro.telefone else None,
        ano=ano, versao=versao,
    )


def _acao(novo_id, executar, sucesso, tipo_jornada='ACOLHIMENTO'):
    registro = obter_da_igreja_or_404(NovoComeco, novo_id)
    try:
        executar(registro)
        registrar_evento_jornada(
            tipo_acao=tipo_jornada,
            descricao_detalhada=f'{sucesso} ({registro.nome})',
            usuario_executor=current_user,
            referencia=f'novo_comeco:{registro.id}',
        )
        flash(sucesso, 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao atualizar registro: {e}', 'danger')
    return redirect(url_for('acolhimento.detalhe', novo_id=novo_id))


@acolhimento_bp.route('/<int:novo_id>/assumir', methods=['POST'])
@login_required
@area_required('acolhimento')
def assumir(novo_id):
    return _acao(novo_id, lambda r: servicos.assumir(r, current_user), 'Você agora acompanha este registro.')


@acolhimento_bp.route('/<int:novo_id>/contato', methods=['POST'])
@login_required
@area_required('acolhimento')
def registrar_contato(novo_id):
    form = ContatoForm()
    if not form.validate_on_submit():
        flash('Escreva o comentário do contato.', 'warning')
        return redirect(url_for('acolhimento.detalhe', novo_id=novo_id))
    return _acao(novo_id, lambda r: servicos.registrar_contato(r, form.anotacoes.data, current_user),
                 'Contato registrado.')


@acolhimento_bp.route('/<int:novo_id>/status', methods=['POST'])
@login_required
@area_required('acolhimento')
def alterar_status(novo_id):
    status = request.form.get('status', '')
    return _acao(novo_id, lambda r: servicos.alterar_status(r, status, current_user),
                 f'Status alterado para {status}.')


@acolhimento_bp.route('/<int:novo_id>/batizado', methods=['POST'])
@login_required
@area_required('acolhimento')
def marcar_batizado(novo_id):
    return _acao(novo_id, lambda r: servicos.marcar_batizado(r, current_user), 'Marcado como batizado(a).')


@acolhimento_bp.route('/<int:novo_id>/aconselhamento', methods=['POST'])
@login_required
@area_required('acolhimento')
def enviar_aconselhamento(novo_id):
    return _acao(novo_id, lambda r: servicos.enviar_para_aconselhamento(r, current_user),
                 'Enviado para a fila de aconselhamento.')


@acolhimento_bp.route('/<int:novo_id>/discipulado', methods=['POST'])
@login_required
@area_required('acolhimento')
def enviar_discipulado(novo_id):
    return _acao(novo_id, lambda r: servicos.enviar_para_discipulado(r, current_user),
                 'Enviado para a central de discipulado.', tipo_jornada='DISCIPULADO')


@acolhimento_bp.route('/<int:novo_id>/voluntariado', methods=['POST'])
@login_required
@area_required('acolhimento')
def enviar_voluntariado(novo_id):
    return _acao(novo_id, lambda r: servicos.enviar_para_voluntariado(r, current_user),
                 'Enviado para a central de voluntários.', tipo_jornada='VOLUNTARIO')


@acolhimento_bp.route('/interesses-gc')
@login_required
@area_required('grupos')
def interesses_grupo():
    return render_template('acolhimento/interesses_grupo.html',
                           registros=servicos.interessados_em_grupo(current_user.igreja_id),
                           ano=ano, versao=versao)


@acolhimento_bp.route('/publico/<int:igreja_id>/novo-comeco', methods=['GET', 'POST'])
def novo_comeco_publico(igreja_id):
    igreja = igreja_publica_or_404(igreja_id)
    grupos = PequenoGrupo.query.filter_by(igreja_id=igreja.id).order_by(PequenoGrupo.nome).all()
    form = NovoComecoForm(grupos=grupos)
    if form.validate_on_submit():
        try:
            registro = servicos.criar_novo_comeco(
                igreja.id, form.nome.data, form.telefone.data, form.email.data,
                form.culto.data, form.pequeno_grupo_id.data, form.interesses.data, form.detalhes(),
            )
            registrar_evento_jornada(
                tipo_acao='ACOLHIMENTO',
                descricao_detalhada=f'Novo começo recebido pelo formulário público: {registro.nome}.',
                usuario_executor=None,
                igreja_id=igreja.id,
                referencia=f'novo_comeco:{registro.id}',
            )
            return render_template('publico/obrigado.html', igreja=igreja,
                                   mensagem='Recebemos seus dados! Em breve alguém da nossa equipe vai falar com você.',
                                   ano=ano, versao=versao)
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao enviar: {e}', 'danger')
    return render_template('acolhimento/publico.html', form=form, igreja=igreja, ano=ano, versao=versao)
