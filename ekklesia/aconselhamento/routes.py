from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify, abort, current_app
from flask_login import login_required, current_user
from datetime import date
from ekklesia.extensions import db
from ekklesia.decorators import area_required, conselheiro_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_publica_or_404, igreja_atual_id
from ekklesia.registros.models import RegistroPendente, PAPEL_AGENDAMENTO
from ekklesia.registros.dados import parse_data_hora
from ekklesia.jornada.models import registrar_evento_jornada
from .models import Conselheiro
from .forms import (AgendamentoPublicoForm, AgendamentoInternoForm, ConselheiroForm, CancelamentoForm,
                    ReagendamentoForm, TransferenciaForm, AtribuirFilaForm, EncontroForm)
from .agenda import (horarios_do_dia, dias_disponiveis, conselheiros_para_topico, disponibilidade_de_texto,
                     disponibilidade_para_texto)
from . import servicos
from .estatisticas import estatisticas_completas
from config import Config

aconselhamento_bp = Blueprint('aconselhamento', __name__, url_prefix='/aconselhamento')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _conselheiros():
    return consulta_igreja(Conselheiro).order_by(Conselheiro.nome).all()


def _obter_agendamento(agendamento_id):
    agendamento = consulta_igreja(RegistroPendente).filter(
        RegistroPendente.id == agendamento_id,
        RegistroPendente.papel == PAPEL_AGENDAMENTO,
    ).first_or_404()
    if not current_user.acesso_total and (
            not current_user.conselheiro_id or
            str(agendamento.dados.get('counselor_id')) != str(current_user.conselheiro_id)):
        abort(403)
    return agendamento


def _avisar_falhas(falhas):
    if falhas:
        flash(f'A alteração foi salva, mas houve erro ao notificar os participantes: {"; ".join(falhas)}', 'warning')


def _horarios_json(conselheiro, igreja_id):
    data_txt = request.args.get('data', '')
    try:
        dia = date.fromisoformat(data_txt)
    except ValueError:
        return jsonify({'erro': 'Data inválida.'}), 400
    ocupados = servicos.agendamentos_do_conselheiro(igreja_id, conselheiro.id)
    return jsonify({
        'conselheiro_id': conselheiro.id,
        'data': dia.isoformat(),
        'dias_disponiveis': dias_disponiveis(conselheiro.disponibilidade),
        'horarios': horarios_do_dia(conselheiro.disponibilidade, ocupados, dia),
    })


@aconselhamento_bp.route('/')
@login_required
@area_required('aconselhamento')
def index():
    status = request.args.get('status', '')
    conselheiro_id = request.args.get('conselheiro_id', type=int)
    mes = request.args.get('mes', '')

    agendamentos = servicos.agendamentos_da_igreja(igreja_atual_id(), [status] if status else None)
    if not current_user.acesso_total:
        conselheiro_id = current_user.conselheiro_id
    if conselheiro_id:
        agendamentos = [a for a in agendamentos if str(a.dados.get('counselor_id')) == str(conselheiro_id)]
    if mes:
        agendamentos = [a for a in agendamentos
                        if (parse_data_hora(a.dados.get('date')) or date.min).strftime('%Y-%m') == mes]

    return render_template('aconselhamento/index.html', agendamentos=agendamentos, conselheiros=_conselheiros(),
                           status_opcoes=Config.STATUS_AGENDAMENTO, cores=Config.CORES_STATUS_AGENDAMENTO,
                           filtros={'status': status, 'conselheiro_id': conselheiro_id, 'mes': mes},
                           ano=ano, versao=versao)


@aconselhamento_bp.route('/novo', methods=['GET', 'POST'])
@login_required
@area_required('aconselhamento')
def novo():
    conselheiros = _conselheiros()
    form = AgendamentoInternoForm(conselheiros=conselheiros)
    if form.validate_on_submit():
        fila = bool(form.fila.data)
        conselheiro = None
        if not fila and form.conselheiro_id.data:
            conselheiro = obter_da_igreja_or_404(Conselheiro, form.conselheiro_id.data)
        try:
            agendamento = servicos.criar_agendamento(
                current_user.igreja, form.dados_solicitante(), form.topico.data,
                conselheiro=conselheiro, data=form.dia.data, horario=form.horario.data,
                fila=fila, status=None if fila else 'Marcado', usuario=current_user,
                detalhes_atividade=f'Atendimento adicionado manualmente por {current_user.nome}.',
            )
        except ValueError as e:
            flash(str(e), 'warning')
            return render_template('aconselhamento/form.html', form=form, conselheiros=conselheiros,
                                   ano=ano, versao=versao)
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao adicionar atendimento: {e}', 'danger')
            return render_template('aconselhamento/form.html', form=form, conselheiros=conselheiros,
                                   ano=ano, versao=versao)

        registrar_evento_jornada(
            tipo_acao='AGENDAMENTO',
            descricao_detalhada=f'Atendimento de {agendamento.nome} adicionado ({agendamento.status}).',
            usuario_executor=current_user,
            referencia=f'agendamento:{agendamento.id}',
        )
        if not fila:
            servicos.notificar_conselheiro(agendamento.igreja_id, agendamento)
        flash('Atendimento adicionado com sucesso!', 'success')
        return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento.id))

    return render_template('aconselhamento/form.html', form=form, conselheiros=conselheiros, ano=ano, versao=versao)


@aconselhamento_bp.route('/<int:agendamento_id>')
@login_required
@area_required('aconselhamento')
def detalhe(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    dados = agendamento.dados
    encontros = [
        dict(m, visivel=not m.get('isConfidential') or servicos.pode_ver_confidencial(current_user, m))
        for m in dados.get('meetings') or []
    ]
    outros = [c for c in _conselheiros() if str(c.id) != str(dados.get('counselor_id'))]
    transferencia_form = TransferenciaForm()
    transferencia_form.conselheiro_id.choices = [(c.id, c.nome) for c in outros]

    return render_template(
        'aconselhamento/detalhe.html',
        agendamento=agendamento, dados=dados, encontros=encontros,
        atividades=list(reversed(dados.get('activities') or [])),
        cancelamento_form=CancelamentoForm(), reagendamento_form=ReagendamentoForm(),
        transferencia_form=transferencia_form, encontro_form=EncontroForm(),
        status_alteraveis=servicos.STATUS_ALTERAVEIS, cores=Config.CORES_STATUS_AGENDAMENTO,
        ano=ano, versao=versao,
    )


@aconselhamento_bp.route('/<int:agendamento_id>/status', methods=['POST'])
@login_required
@area_required('aconselhamento')
def alterar_status(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    novo_status = request.form.get('status', '')
    try:
        falhas = servicos.alterar_status(agendamento, novo_status, current_user, request.form.get('motivo'))
        flash(f'Status atualizado! O atendimento agora está: {novo_status}.', 'success')
        _avisar_falhas(falhas)
        registrar_evento_jornada(
            tipo_acao='AGENDAMENTO',
            descricao_detalhada=f'Atendimento de {agendamento.nome} alterado para "{novo_status}".',
            usuario_executor=current_user,
            referencia=f'agendamento:{agendamento.id}',
        )
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao atualizar status: {e}', 'danger')
    return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))


@aconselhamento_bp.route('/<int:agendamento_id>/confirmar', methods=['POST'])
@login_required
@area_required('aconselhamento')
def confirmar(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    try:
        servicos.confirmar(agendamento, current_user)
        flash('Atendimento confirmado!', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao confirmar atendimento: {e}', 'danger')
    return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))


@aconselhamento_bp.route('/<int:agendamento_id>/reagendar', methods=['POST'])
@login_required
@area_required('aconselhamento')
def reagendar(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    form = ReagendamentoForm()
    if not form.validate_on_submit():
        flash('Selecione a nova data e hora.', 'warning')
        return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))
    try:
        falhas = servicos.reagendar(agendamento, form.dia.data, form.horario.data, current_user)
        flash('Atendimento reagendado!', 'success')
        _avisar_falhas(falhas)
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao reagendar: {e}', 'danger')
    return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))


@aconselhamento_bp.route('/<int:agendamento_id>/transferir', methods=['POST'])
@login_required
@area_required('aconselhamento')
def transferir(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    form = TransferenciaForm()
    form.conselheiro_id.choices = [(c.id, c.nome) for c in _conselheiros()]
    if not form.validate_on_submit():
        flash('Selecione o novo conselheiro e informe a justificativa.', 'warning')
        return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))

    novo_conselheiro = obter_da_igreja_or_404(Conselheiro, form.conselheiro_id.data)
    try:
        servicos.transferir(agendamento, novo_conselheiro, form.motivo.data, current_user)
        flash(f'Atendimento transferido! O atendimento foi atribuído a {novo_conselheiro.nome}.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao transferir: {e}', 'danger')

    if current_user.acesso_total:
        return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))
    return redirect(url_for('aconselhamento.minha_agenda'))


@aconselhamento_bp.route('/<int:agendamento_id>/encontros', methods=['POST'])
@login_required
@area_required('aconselhamento')
def salvar_encontro(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    form = EncontroForm()
    if not form.validate_on_submit():
        flash('Preencha o assunto e as anotações.', 'warning')
        return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))
    try:
        servicos.salvar_encontro(
            agendamento, current_user, form.dia.data, form.assunto.data, form.anotacoes.data,
            form.proximos_passos.data or '', form.confidencial.data, form.encontro_id.data or None,
        )
        flash('Encontro salvo com sucesso!', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao salvar encontro: {e}', 'danger')
    return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))


@aconselhamento_bp.route('/<int:agendamento_id>/whatsapp', methods=['POST'])
@login_required
@area_required('aconselhamento')
def contato_whatsapp(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    try:
        link = servicos.registrar_contato_whatsapp(agendamento, current_user)
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao registrar atividade: {e}', 'danger')
        return redirect(url_for('aconselhamento.detalhe', agendamento_id=agendamento_id))
    return redirect(link)


@aconselhamento_bp.route('/fila')
@login_required
@area_required('aconselhamento')
def fila():
    agendamentos = servicos.agendamentos_da_igreja(igreja_atual_id(), ['Na Fila'])
    agendamentos.sort(key=lambda a: a.created_at)
    form = AtribuirFilaForm()
    form.conselheiro_id.choices = [(c.id, c.nome) for c in _conselheiros()]
    return render_template('aconselhamento/fila.html', agendamentos=agendamentos, form=form, ano=ano, versao=versao)


@aconselhamento_bp.route('/fila/<int:agendamento_id>/atribuir', methods=['POST'])
@login_required
@area_required('aconselhamento')
def atribuir_fila(agendamento_id):
    agendamento = _obter_agendamento(agendamento_id)
    form = AtribuirFilaForm()
    form.conselheiro_id.choices = [(c.id, c.nome) for c in _conselheiros()]
    if not form.validate_on_submit():
        flash('Selecione o conselheiro, a data e o horário.', 'warning')
        return redirect(url_for('aconselhamento.fila'))

    conselheiro = obter_da_igreja_or_404(Conselheiro, form.conselheiro_id.data)
    try:
        falhas = servicos.atribuir_da_fila(agendamento, conselheiro, form.dia.data, form.horario.data, current_user)
        servicos.notificar_conselheiro(agendamento.igreja_id, agendamento)
        flash(f'Atendimento de {agendamento.nome} agendado com {conselheiro.nome}.', 'success')
        _avisar_falhas(falhas)
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao agendar atendimento: {e}', 'danger')
    return redirect(url_for('aconselhamento.fila'))


@aconselhamento_bp.route('/minha-agenda')
@login_required
@conselheiro_required
def minha_agenda():
    agendamentos = servicos.agendamentos_do_conselheiro(
        current_user.igreja_id, current_user.conselheiro_id, status=Config.STATUS_AGENDAMENTO)
    agendamentos.sort(key=lambda a: a.dados.get('date') or '')
    ativos = [a for a in agendamentos if a.status in Config.STATUS_AGENDAMENTO_ATIVOS]
    historico = [a for a in agendamentos if a.status not in Config.STATUS_AGENDAMENTO_ATIVOS]
    return render_template('aconselhamento/minha_agenda.html', ativos=ativos, historico=historico,
                           cores=Config.CORES_STATUS_AGENDAMENTO, ano=ano, versao=versao)


@aconselhamento_bp.route('/minhas-estatisticas')
@login_required
@conselheiro_required
def minhas_estatisticas():
    mes = request.args.get('mes', '')
    agendamentos = servicos.agendamentos_do_conselheiro(
        current_user.igreja_id, current_user.conselheiro_id, status=Config.STATUS_AGENDAMENTO)
    return render_template('aconselhamento/estatisticas.html', estatisticas=estatisticas_completas(agendamentos, mes),
                           mes=mes, pessoal=True, ano=ano, versao=versao)


@aconselhamento_bp.route('/estatisticas')
@login_required
@area_required('aconselhamento')
def estatisticas():
    mes = request.args.get('mes', '')
    agendamentos = servicos.agendamentos_da_igreja(igreja_atual_id())
    return render_template('aconselhamento/estatisticas.html', estatisticas=estatisticas_completas(agendamentos, mes),
                           mes=mes, pessoal=False, ano=ano, versao=versao)


@aconselhamento_bp.route('/conselheiros')
@login_required
@area_required('aconselhamento')
def conselheiros():
    topico = request.args.get('topico', '')
    lista = _conselheiros()
    if topico:
        lista = [c for c in lista if topico in c.lista_topicos]
    return render_template('aconselhamento/conselheiros.html', conselheiros=lista, topico=topico,
                           topicos=Config.TOPICOS_ACONSELHAMENTO, ano=ano, versao=versao)


def _preencher_conselheiro(conselheiro, form):
    conselheiro.nome = form.nome.data
    conselheiro.email = form.email.data or None
    conselheiro.telefone = form.telefone.data or None
    conselheiro.genero = form.genero.data or None
    conselheiro.data_nascimento = form.data_nascimento.data
    conselheiro.estado_civil = form.estado_civil.data or None
    conselheiro.topicos = list(form.topicos.data or [])
    conselheiro.disponibilidade = disponibilidade_de_texto(form.disponibilidade.data)


@aconselhamento_bp.route('/conselheiros/novo', methods=['GET', 'POST'])
@login_required
@area_required('aconselhamento')
def novo_conselheiro():
    form = ConselheiroForm()
    if form.validate_on_submit():
        conselheiro = Conselheiro(igreja_id=igreja_atual_id())
        _preencher_conselheiro(conselheiro, form)
        try:
            db.session.add(conselheiro)
            db.session.commit()
            flash(f'Conselheiro(a) {conselheiro.nome} cadastrado(a) com sucesso!', 'success')
            return redirect(url_for('aconselhamento.conselheiros'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao cadastrar conselheiro: {e}', 'danger')
    return render_template('aconselhamento/conselheiro_form.html', form=form, conselheiro=None, ano=ano, versao=versao)


@aconselhamento_bp.route('/conselheiros/<int:conselheiro_id>/editar', methods=['GET', 'POST'])
@login_required
@area_required('aconselhamento')
def editar_conselheiro(conselheiro_id):
    conselheiro = obter_da_igreja_or_404(Conselheiro, conselheiro_id)
    if not current_user.acesso_total and current_user.conselheiro_id != conselheiro.id:
        flash('Você só pode editar o seu próprio perfil de conselheiro.', 'danger')
        return redirect(url_for('aconselhamento.conselheiros'))

    form = ConselheiroForm(obj=conselheiro)
    if request.method == 'GET':
        form.topicos.data = conselheiro.lista_topicos
        form.disponibilidade.data = disponibilidade_para_texto(conselheiro.disponibilidade)

    if form.validate_on_submit():
        _preencher_conselheiro(conselheiro, form)
        try:
            db.session.commit()
            flash('Perfil do conselheiro atualizado!', 'success')
            return redirect(url_for('aconselhamento.conselheiros'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar conselheiro: {e}', 'danger')
    return render_template('aconselhamento/conselheiro_form.html', form=form, conselheiro=conselheiro,
                           ano=ano, versao=versao)


@aconselhamento_bp.route('/conselheiros/<int:conselheiro_id>/excluir', methods=['POST'])
@login_required
@area_required('aconselhamento')
def excluir_conselheiro(conselheiro_id):
    conselheiro = obter_da_igreja_or_404(Conselheiro, conselheiro_id)
    if not current_user.acesso_total:
        flash('Você não tem permissão para excluir conselheiros.', 'danger')
        return redirect(url_for('aconselhamento.conselheiros'))
    if servicos.agendamentos_do_conselheiro(conselheiro.igreja_id, conselheiro.id):
        flash('Este conselheiro possui atendimentos ativos. Transfira-os antes de excluir.', 'warning')
        return redirect(url_for('aconselhamento.conselheiros'))
    try:
        if conselheiro.user:
            conselheiro.user.conselheiro_id = None
        db.session.delete(conselheiro)
        db.session.commit()
        flash('Conselheiro excluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir conselheiro: {e}', 'danger')
    return redirect(url_for('aconselhamento.conselheiros'))


@aconselhamento_bp.route('/conselheiros/<int:conselheiro_id>/horarios')
@login_required
@area_required('aconselhamento')
def horarios(conselheiro_id):
    conselheiro = obter_da_igreja_or_404(Conselheiro, conselheiro_id)
    return _horarios_json(conselheiro, conselheiro.igreja_id)


@aconselhamento_bp.route('/publico/<int:igreja_id>/conselheiros')
def conselheiros_publico(igreja_id):
    igreja_publica_or_404(igreja_id)
    todos = Conselheiro.query.filter_by(igreja_id=igreja_id).order_by(Conselheiro.nome).all()
    selecionados = conselheiros_para_topico(todos, request.args.get('topico', ''), request.args.get('genero') or None)
    return jsonify([
        {'id': c.id, 'nome': c.nome, 'dias_disponiveis': dias_disponiveis(c.disponibilidade)}
        for c in selecionados
    ])


@aconselhamento_bp.route('/publico/<int:igreja_id>/conselheiros/<int:conselheiro_id>/horarios')
def horarios_publico(igreja_id, conselheiro_id):
    igreja_publica_or_404(igreja_id)
    conselheiro = Conselheiro.query.filter_by(igreja_id=igreja_id, id=conselheiro_id).first_or_404()
    return _horarios_json(conselheiro, igreja_id)


@aconselhamento_bp.route('/publico/<int:igreja_id>/agendar', methods=['GET', 'POST'])
def agendar_publico(igreja_id):
    igreja = igreja_publica_or_404(igreja_id)
    todos = Conselheiro.query.filter_by(igreja_id=igreja_id).order_by(Conselheiro.nome).all()
    form = AgendamentoPublicoForm(conselheiros=todos)

    if form.validate_on_submit():
        fila = bool(form.fila.data)
        conselheiro = None
        if not fila and form.conselheiro_id.data:
            conselheiro = next((c for c in todos if c.id == form.conselheiro_id.data), None)
        try:
            agendamento = servicos.criar_agendamento(
                igreja, form.dados_solicitante(), form.topico.data, conselheiro=conselheiro,
                data=form.dia.data, horario=form.horario.data, fila=fila,
            )
        except ValueError as e:
            flash(str(e), 'warning')
            return render_template('aconselhamento/agendar_publico.html', form=form, igreja=igreja,
                                   ano=ano, versao=versao)
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f'Erro no agendamento público da igreja {igreja_id}: {e}')
            flash(f'Ocorreu um erro: {e}', 'danger')
            return render_template('aconselhamento/agendar_publico.html', form=form, igreja=igreja,
                                   ano=ano, versao=versao)

        registrar_evento_jornada(
            tipo_acao='AGENDAMENTO',
            descricao_detalhada=f'Solicitação de atendimento recebida de {agendamento.nome} ({agendamento.status}).',
            usuario_executor=None,
            igreja_id=igreja.id,
            referencia=f'agendamento:{agendamento.id}',
        )

        email_enviado = servicos.notificar_solicitante(igreja, agendamento)
        if not fila:
            servicos.notificar_conselheiro(igreja.id, agendamento)

        if fila:
            flash('Você está na fila! Sua solicitação foi recebida e você foi adicionado à fila de espera.', 'success')
        else:
            flash('Agendamento enviado! Seu pedido foi recebido.', 'success')
        if not email_enviado:
            flash('Não foi possível enviar o e-mail de confirmação, mas sua solicitação foi recebida.', 'warning')
        return redirect(url_for('aconselhamento.agendar_publico', igreja_id=igreja.id))

    return render_template('aconselhamento/agendar_publico.html', form=form, igreja=igreja, ano=ano, versao=versao)
