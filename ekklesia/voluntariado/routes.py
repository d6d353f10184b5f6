from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user
from datetime import date
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_publica_or_404, igreja_atual_id
from ekklesia.registros.models import RegistroPendente, PAPEL_VOLUNTARIO
from ekklesia.registros.dados import ids_de
from ekklesia.ministerios.servicos import ministerios_da_igreja, obter_ministerio
from ekklesia.aconselhamento.agenda import disponibilidade_de_texto
from ekklesia.jornada.models import registrar_evento_jornada
from .models import Voluntario, EscalaVoluntario
from .forms import InscricaoVoluntarioForm, AtribuirMinisteriosForm, StatusEmLoteForm, EscalaForm
from .escalas import periodos_disponiveis, contagem_por_periodo
from . import servicos
from config import Config

voluntariado_bp = Blueprint('voluntariado', __name__, url_prefix='/voluntariado')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _inscricao_or_404(inscricao_id):
    return consulta_igreja(RegistroPendente).filter(
        RegistroPendente.id == inscricao_id, RegistroPendente.papel == PAPEL_VOLUNTARIO,
    ).first_or_404()


@voluntariado_bp.route('/')
@login_required
@area_required('voluntariado')
def index():
    status = request.args.get('status', '')
    ministerio_id = request.args.get('ministerio_id', type=int)

    inscricoes = servicos.inscricoes_da_igreja(igreja_atual_id())
    novos = [i for i in inscricoes if i.status == 'Pendente']
    alocados = [i for i in inscricoes if i.status == 'Alocado']
    outros = [i for i in inscricoes if i.status not in ('Pendente', 'Alocado')]
    if status:
        outros = [i for i in outros if i.status == status]
    if ministerio_id:
        outros = [i for i in outros
                  if ministerio_id in ids_de(i.dados.get('assigned_ministry_ids'))
                  or ministerio_id in ids_de(i.dados.get('ministry_interests'))]

    ministerios = ministerios_da_igreja(igreja_atual_id())
    return render_template(
        'voluntariado/index.html',
        novos=novos, alocados=alocados, outros=outros,
        ministerios={m.id: m for m in ministerios},
        status_form=StatusEmLoteForm(), status_opcoes=Config.STATUS_VOLUNTARIO,
        filtros={'status': status, 'ministerio_id': ministerio_id},
        ano=ano, versao=versao,
    )


@voluntariado_bp.route('/status-em-lote', methods=['POST'])
@login_required
@area_required('voluntariado')
def status_em_lote():
    form = StatusEmLoteForm()
    ids = ids_de(request.form.getlist('inscricao_ids'))
    if not form.validate_on_submit() or not ids:
        flash('Selecione ao menos uma inscrição e o novo status.', 'warning')
        return redirect(url_for('voluntariado.index'))

    inscricoes = consulta_igreja(RegistroPendente).filter(
        RegistroPendente.papel == PAPEL_VOLUNTARIO, RegistroPendente.id.in_(ids),
    ).all()
    try:
        total = servicos.atualizar_status(inscricoes, form.status.data, current_user)
        flash(f'{total} inscrição(ões) atualizada(s) para "{form.status.data}".', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao atualizar status: {e}', 'danger')
    return redirect(url_for('voluntariado.index'))


@voluntariado_bp.route('/inscricoes/<int:inscricao_id>')
@login_required
@area_required('voluntariado')
def inscricao(inscricao_id):
    registro = _inscricao_or_404(inscricao_id)
    ministerios = ministerios_da_igreja(igreja_atual_id())
    form = AtribuirMinisteriosForm()
    form.ministerios.choices = [(m.id, m.nome) for m in ministerios]
    if not form.is_submitted():
        form.ministerios.data = ids_de(registro.dados.get('ministry_interests'))
    return render_template(
        'voluntariado/inscricao.html',
        inscricao=registro, dados=registro.dados, form=form,
        ministerios={m.id: m for m in ministerios},
        periodos=periodos_disponiveis(registro.dados.get('availability')),
        atividades=list(reversed(registro.dados.get('activities') or [])),
        ano=ano, versao=versao,
    )


@voluntariado_bp.route('/inscricoes/<int:inscricao_id>/atribuir', methods=['POST'])
@login_required
@area_required('voluntariado')
def atribuir(inscricao_id):
    registro = _inscricao_or_404(inscricao_id)
    form = AtribuirMinisteriosForm()
    form.ministerios.choices = [(m.id, m.nome) for m in ministerios_da_igreja(igreja_atual_id())]
    if not form.validate_on_submit():
        flash('Selecione ao menos um ministério.', 'warning')
        return redirect(url_for('voluntariado.inscricao', inscricao_id=inscricao_id))
    try:
        servicos.atribuir_ministerios(registro, form.ministerios.data, current_user)
        flash('Voluntário encaminhado para aprovação dos líderes.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao atribuir ministérios: {e}', 'danger')
    return redirect(url_for('voluntariado.index'))


@voluntariado_bp.route('/voluntarios')
@login_required
@area_required('voluntariado')
def voluntarios():
    lista = consulta_igreja(Voluntario).order_by(Voluntario.nome).all()
    ministerios = {m.id: m for m in ministerios_da_igreja(igreja_atual_id())}
    return render_template('voluntariado/voluntarios.html', voluntarios=lista, ministerios=ministerios,
                           ano=ano, versao=versao)


@voluntariado_bp.route('/painel')
@login_required
@area_required('voluntariado')
def painel():
    resumo = servicos.resumo_painel(igreja_atual_id())
    escalas_mes = consulta_igreja(EscalaVoluntario).filter(EscalaVoluntario.mes == date.today().strftime('%Y-%m')).all()
    return render_template('voluntariado/painel.html', resumo=resumo, por_periodo=contagem_por_periodo(escalas_mes),
                           ano=ano, versao=versao)


@voluntariado_bp.route('/escalas', methods=['GET', 'POST'])
@login_required
@area_required('voluntariado')
def escalas():
    form = EscalaForm()
    form.ministerio_id.choices = [(m.id, m.nome) for m in ministerios_da_igreja(igreja_atual_id())]
    if request.method == 'GET' and not form.mes.data:
        form.mes.data = date.today().strftime('%Y-%m')

    if form.validate_on_submit():
        ministerio = obter_ministerio(igreja_atual_id(), form.ministerio_id.data)
        if ministerio is None:
            flash('Ministério não encontrado.', 'warning')
            return redirect(url_for('voluntariado.escalas'))
        try:
            semanas = servicos.gerar_escala_ministerio(ministerio, form.mes.data)
            escala = servicos.salvar_escala(ministerio, form.mes.data, semanas, aprovada=False)
            flash('Escala gerada! Revise e aprove antes de enviar.', 'success')
            return redirect(url_for('voluntariado.escala', escala_id=escala.id))
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao gerar escala: {e}', 'danger')

    lista = consulta_igreja(EscalaVoluntario).order_by(EscalaVoluntario.mes.desc()).all()
    return render_template('voluntariado/escalas.html', form=form, escalas=lista, ano=ano, versao=versao)


@voluntariado_bp.route('/escalas/<int:escala_id>')
@login_required
@area_required('voluntariado')
def escala(escala_id):
    registro = obter_da_igreja_or_404(EscalaVoluntario, escala_id)
    return render_template('voluntariado/escala.html', escala=registro, semanas=registro.semanas, ano=ano, versao=versao)


@voluntariado_bp.route('/escalas/<int:escala_id>/aprovar', methods=['POST'])
@login_required
@area_required('voluntariado')
def aprovar_escala(escala_id):
    registro = obter_da_igreja_or_404(EscalaVoluntario, escala_id)
    try:
        registro.aprovada = True
        db.session.commit()
        flash('Escala aprovada e salva!', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao aprovar escala: {e}', 'danger')
    return redirect(url_for('voluntariado.escala', escala_id=escala_id))


@voluntariado_bp.route('/escalas/<int:escala_id>/enviar', methods=['POST'])
@login_required
@area_required('voluntariado')
def enviar_escala(escala_id):
    registro = obter_da_igreja_or_404(EscalaVoluntario, escala_id)
    if not registro.aprovada:
        flash('Aprove a escala antes de enviá-la.', 'warning')
        return redirect(url_for('voluntariado.escala', escala_id=escala_id))
    ministerio = obter_ministerio(registro.igreja_id, registro.ministerio_id)
    try:
        enviadas, total = servicos.enviar_escala(registro, ministerio, current_user.nome)
        registrar_evento_jornada(
            tipo_acao='MENSAGEM',
            descricao_detalhada=f'Escala de {registro.nome_ministerio} ({registro.mes}) enviada a {enviadas} voluntário(s).',
            usuario_executor=current_user,
        )
        flash(f'{enviadas} de {total} voluntários foram notificados por WhatsApp.', 'success' if enviadas == total else 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao enviar escala: {e}', 'danger')
    return redirect(url_for('voluntariado.escala', escala_id=escala_id))


@voluntariado_bp.route('/publico/<int:igreja_id>/inscricao', methods=['GET', 'POST'])
def inscricao_publica(igreja_id):
    igreja = igreja_publica_or_404(igreja_id)
    form = InscricaoVoluntarioForm(ministerios=ministerios_da_igreja(igreja.id))
    if form.validate_on_submit():
        try:
            servicos.criar_inscricao(
                igreja.id, form.nome.data, form.email.data, form.telefone.data,
                ministerios_interesse=form.ministerios.data,
                disponibilidade=disponibilidade_de_texto(form.disponibilidade.data),
                observacoes=form.observacoes.data,
            )
            registrar_evento_jornada(
                tipo_acao='VOLUNTARIO',
                descricao_detalhada=f'Nova inscrição de voluntário: {form.nome.data}.',
                usuario_executor=None,
                igreja_id=igreja.id,
            )
            flash('Inscrição recebida! Nossa equipe entrará em contato.', 'success')
            return redirect(url_for('voluntariado.inscricao_publica', igreja_id=igreja.id))
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao enviar inscrição: {e}', 'danger')
    return render_template('voluntariado/inscricao_publica.html', form=form, igreja=igreja, ano=ano, versao=versao)
