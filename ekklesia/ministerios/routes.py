from flask import Blueprint, render_template, redirect, url_for, flash, request, abort
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404, igreja_atual_id
from ekklesia.registros.models import RegistroPendente, PAPEL_VOLUNTARIO
from ekklesia.membresia.models import PastorLider
from ekklesia.voluntariado.models import Voluntario
from ekklesia.jornada.models import registrar_evento_jornada
from .forms import MinisterioForm, RecusaVoluntarioForm, VoluntarioMinisterioForm, TransferenciaVoluntarioForm
from . import servicos
from config import Config

ministerios_bp = Blueprint('ministerios', __name__, url_prefix='/ministerios')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _lideres():
    return consulta_igreja(PastorLider).order_by(PastorLider.nome).all()


def _ministerio_or_404(ministerio_id):
    ministerio = servicos.obter_ministerio(igreja_atual_id(), ministerio_id)
    if ministerio is None:
        abort(404)
    return ministerio


def _inscricao_or_404(inscricao_id):
    return consulta_igreja(RegistroPendente).filter(
        RegistroPendente.id == inscricao_id, RegistroPendente.papel == PAPEL_VOLUNTARIO,
    ).first_or_404()


@ministerios_bp.route('/')
@login_required
@area_required('ministerios')
def index():
    ministerios = servicos.ministerios_da_igreja(igreja_atual_id())
    lideres = {l.id: l for l in _lideres()}
    resumo = [
        {
            'ministerio': m,
            'pastor': lideres.get(m.dados.get('pastor_id')),
            'total_voluntarios': len(m.dados.get('volunteer_ids') or []),
            'aguardando': len(servicos.inscricoes_aguardando(m)),
        }
        for m in ministerios
    ]
    return render_template('ministerios/index.html', resumo=resumo, ano=ano, versao=versao)


@ministerios_bp.route('/novo', methods=['GET', 'POST'])
@login_required
@area_required('ministerios')
def novo():
    form = MinisterioForm(lideres=_lideres())
    if form.validate_on_submit():
        try:
            ministerio = servicos.criar_ministerio(igreja_atual_id(), form.nome.data, form.descricao.data,
                                                   form.pastor_id.data or None, current_user)
            registrar_evento_jornada(
                tipo_acao='MINISTERIO',
                descricao_detalhada=f'Ministério {ministerio.nome} criado.',
                usuario_executor=current_user,
                referencia=f'ministerio:{ministerio.id}',
            )
            flash('Ministério criado com sucesso!', 'success')
            return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio.id))
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar ministério: {e}', 'danger')
    return render_template('ministerios/form.html', form=form, ministerio=None, ano=ano, versao=versao)


@ministerios_bp.route('/<int:ministerio_id>/editar', methods=['GET', 'POST'])
@login_required
@area_required('ministerios')
def editar(ministerio_id):
    ministerio = _ministerio_or_404(ministerio_id)
    form = MinisterioForm(lideres=_lideres())
    if request.method == 'GET':
        form.nome.data = ministerio.nome
        form.descricao.data = ministerio.dados.get('description')
        form.pastor_id.data = ministerio.dados.get('pastor_id') or 0

    if form.validate_on_submit():
        try:
            servicos.editar_ministerio(ministerio, form.nome.data, form.descricao.data,
                                       form.pastor_id.data or None, current_user)
            flash('Ministério atualizado!', 'success')
            return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio.id))
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar ministério: {e}', 'danger')
    return render_template('ministerios/form.html', form=form, ministerio=ministerio, ano=ano, versao=versao)


@ministerios_bp.route('/<int:ministerio_id>/excluir', methods=['POST'])
@login_required
@area_required('ministerios')
def excluir(ministerio_id):
    ministerio = _ministerio_or_404(ministerio_id)
    nome = ministerio.nome
    try:
        servicos.excluir_ministerio(ministerio)
        registrar_evento_jornada(
            tipo_acao='MINISTERIO',
            descricao_detalhada=f'Ministério {nome} excluído.',
            usuario_executor=current_user,
        )
        flash('Ministério excluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir ministério: {e}', 'danger')
    return redirect(url_for('ministerios.index'))


@ministerios_bp.route('/<int:ministerio_id>')
@login_required
@area_required('ministerios')
def detalhe(ministerio_id):
    ministerio = _ministerio_or_404(ministerio_id)
    dados = ministerio.dados
    voluntarios = servicos.voluntarios_do_ministerio(ministerio)
    ids_atuais = {v.id for v in voluntarios}

    adicionar_form = VoluntarioMinisterioForm()
    adicionar_form.voluntario_id.choices = [
        (v.id, v.nome) for v in consulta_igreja(Voluntario).order_by(Voluntario.nome).all() if v.id not in ids_atuais
    ]
    transferencia_form = TransferenciaVoluntarioForm()
    transferencia_form.destino_id.choices = [
        (m.id, m.nome) for m in servicos.ministerios_da_igreja(ministerio.igreja_id) if m.id != ministerio.id
    ]
    pastor = None
    if dados.get('pastor_id'):
        pastor = consulta_igreja(PastorLider).filter(PastorLider.id == dados['pastor_id']).first()

    return render_template(
        'ministerios/detalhe.html',
        ministerio=ministerio, dados=dados, pastor=pastor, voluntarios=voluntarios,
        aguardando=servicos.inscricoes_aguardando(ministerio),
        atividades=list(reversed(dados.get('activities') or [])),
        adicionar_form=adicionar_form, transferencia_form=transferencia_form,
        recusa_form=RecusaVoluntarioForm(), ano=ano, versao=versao,
    )


@ministerios_bp.route('/<int:ministerio_id>/inscricoes/<int:inscricao_id>/aprovar', methods=['POST'])
@login_required
@area_required('ministerios')
def aprovar_voluntario(ministerio_id, inscricao_id):
    ministerio = _ministerio_or_404(ministerio_id)
    inscricao = _inscricao_or_404(inscricao_id)
    try:
        voluntario = servicos.aprovar_voluntario(ministerio, inscricao, current_user)
        registrar_evento_jornada(
            tipo_acao='VOLUNTARIO',
            descricao_detalhada=f'{voluntario.nome} aprovado no ministério {ministerio.nome}.',
            usuario_executor=current_user,
            membros=[voluntario.membro] if voluntario.membro else None,
        )
        flash(f'Voluntário aprovado! {voluntario.nome} agora faz parte do ministério.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao aprovar: {e}', 'danger')
    return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio_id))


@ministerios_bp.route('/<int:ministerio_id>/inscricoes/<int:inscricao_id>/recusar', methods=['POST'])
@login_required
@area_required('ministerios')
def recusar_voluntario(ministerio_id, inscricao_id):
    ministerio = _ministerio_or_404(ministerio_id)
    inscricao = _inscricao_or_404(inscricao_id)
    try:
        servicos.recusar_voluntario(ministerio, inscricao, request.form.get('motivo', ''), current_user)
        flash("Voluntário recusado. A inscrição foi movida para 'Com Retorno' para reavaliação do coordenador.", 'info')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao recusar voluntário: {e}', 'danger')
    return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio_id))


@ministerios_bp.route('/<int:ministerio_id>/voluntarios', methods=['POST'])
@login_required
@area_required('ministerios')
def adicionar_voluntario(ministerio_id):
    ministerio = _ministerio_or_404(ministerio_id)
    voluntario = obter_da_igreja_or_404(Voluntario, request.form.get('voluntario_id', type=int))
    try:
        servicos.adicionar_voluntario(ministerio, voluntario, current_user)
        flash(f'{voluntario.nome} adicionado ao ministério.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao adicionar voluntário: {e}', 'danger')
    return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio_id))


@ministerios_bp.route('/<int:ministerio_id>/voluntarios/<int:voluntario_id>/remover', methods=['POST'])
@login_required
@area_required('ministerios')
def remover_voluntario(ministerio_id, voluntario_id):
    ministerio = _ministerio_or_404(ministerio_id)
    voluntario = obter_da_igreja_or_404(Voluntario, voluntario_id)
    try:
        servicos.remover_voluntario(ministerio, voluntario, current_user)
        flash(f'{voluntario.nome} removido do ministério.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao remover voluntário: {e}', 'danger')
    return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio_id))


@ministerios_bp.route('/<int:ministerio_id>/voluntarios/<int:voluntario_id>/transferir', methods=['POST'])
@login_required
@area_required('ministerios')
def transferir_voluntario(ministerio_id, voluntario_id):
    origem = _ministerio_or_404(ministerio_id)
    destino = _ministerio_or_404(request.form.get('destino_id', type=int))
    voluntario = obter_da_igreja_or_404(Voluntario, voluntario_id)
    try:
        servicos.transferir_voluntario(origem, destino, voluntario, current_user)
        flash(f'{voluntario.nome} transferido. A inscrição aguarda aprovação do líder de {destino.nome}.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao transferir voluntário: {e}', 'danger')
    return redirect(url_for('ministerios.detalhe', ministerio_id=ministerio_id))
