from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, igreja_atual_id
from ekklesia.registros.models import RegistroPendente, PAPEL_DISCIPULADO
from ekklesia.membresia.models import Membro
from ekklesia.jornada.models import registrar_evento_jornada
from .forms import RelacaoForm, AtribuirDiscipuladorForm, EncontroDiscipuladoForm
from . import servicos
from config import Config

discipulado_bp = Blueprint('discipulado', __name__, url_prefix='/discipulado')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _membros():
    return consulta_igreja(Membro).filter(Membro.status == 'Ativo').order_by(Membro.nome).all()


def _relacao_or_404(relacao_id):
    return consulta_igreja(RegistroPendente).filter(
        RegistroPendente.id == relacao_id, RegistroPendente.papel == PAPEL_DISCIPULADO,
    ).first_or_404()


@discipulado_bp.route('/')
@login_required
@area_required('discipulado')
def index():
    membros = _membros()
    por_id = {m.id: m for m in consulta_igreja(Membro).all()}
    relacoes = servicos.relacoes_da_igreja(igreja_atual_id(), ['Ativo', 'Concluído'])
    atribuir_form = AtribuirDiscipuladorForm()
    atribuir_form.discipulador_id.choices = [(m.id, m.nome) for m in membros]
    return render_template(
        'discipulado/index.html',
        relacoes=relacoes, membros=por_id,
        pendentes=servicos.discipulos_pendentes(igreja_atual_id()),
        form=RelacaoForm(membros=membros), atribuir_form=atribuir_form,
        ano=ano, versao=versao,
    )


@discipulado_bp.route('/novo', methods=['POST'])
@login_required
@area_required('discipulado')
def novo():
    form = RelacaoForm(membros=_membros())
    if not form.validate_on_submit():
        flash('Selecione o discipulador e o discípulo.', 'warning')
        return redirect(url_for('discipulado.index'))
    try:
        relacao = servicos.criar_relacao(igreja_atual_id(), form.discipulador_id.data, form.discipulo_id.data, current_user)
        discipulo = consulta_igreja(Membro).filter(Membro.id == form.discipulo_id.data).first()
        registrar_evento_jornada(
            tipo_acao='DISCIPULADO',
            descricao_detalhada=f'Iniciou discipulado ({relacao.nome}).',
            usuario_executor=current_user,
            membros=[discipulo] if discipulo else None,
        )
        flash('Relação de discipulado criada!', 'success')
        return redirect(url_for('discipulado.detalhe', relacao_id=relacao.id))
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao criar relação: {e}', 'danger')
    return redirect(url_for('discipulado.index'))


@discipulado_bp.route('/<int:relacao_id>')
@login_required
@area_required('discipulado')
def detalhe(relacao_id):
    relacao = _relacao_or_404(relacao_id)
    dados = relacao.dados
    por_id = {m.id: m for m in consulta_igreja(Membro).all()}
    encontros = sorted(dados.get('meetings') or [], key=lambda m: m.get('meeting_date') or '', reverse=True)
    return render_template(
        'discipulado/detalhe.html',
        relacao=relacao, dados=dados, encontros=encontros,
        discipulador=por_id.get(dados.get('discipler_id')), discipulo=por_id.get(dados.get('disciple_id')),
        form=EncontroDiscipuladoForm(), ano=ano, versao=versao,
    )


@discipulado_bp.route('/<int:relacao_id>/encontros', methods=['POST'])
@login_required
@area_required('discipulado')
def registrar_encontro(relacao_id):
    relacao = _relacao_or_404(relacao_id)
    form = EncontroDiscipuladoForm()
    if not form.validate_on_submit():
        flash('Preencha o assunto e as anotações.', 'warning')
        return redirect(url_for('discipulado.detalhe', relacao_id=relacao_id))
    try:
        servicos.registrar_encontro(relacao, form.dia.data, form.assunto.data, form.anotacoes.data,
                                    form.proximos_passos.data, current_user)
        flash('Encontro registrado!', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao salvar encontro: {e}', 'danger')
    return redirect(url_for('discipulado.detalhe', relacao_id=relacao_id))


@discipulado_bp.route('/<int:relacao_id>/atribuir', methods=['POST'])
@login_required
@area_required('discipulado')
def atribuir(relacao_id):
    relacao = _relacao_or_404(relacao_id)
    try:
        discipulador = servicos.atribuir_discipulador(relacao, request.form.get('discipulador_id', type=int), current_user)
        flash(f'{discipulador.nome} agora acompanha {relacao.nome}.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao atribuir discipulador: {e}', 'danger')
    return redirect(url_for('discipulado.index'))


@discipulado_bp.route('/<int:relacao_id>/encerrar', methods=['POST'])
@login_required
@area_required('discipulado')
def encerrar(relacao_id):
    relacao = _relacao_or_404(relacao_id)
    try:
        servicos.encerrar(relacao, current_user)
        flash('Discipulado concluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao concluir discipulado: {e}', 'danger')
    return redirect(url_for('discipulado.detalhe', relacao_id=relacao_id))
