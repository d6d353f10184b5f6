from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.grupos.models import PequenoGrupo
from ekklesia.grupos.forms import PequenoGrupoForm
from ekklesia.membresia.models import Membro
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404
from ekklesia.jornada.models import registrar_evento_jornada
from ekklesia.decorators import area_required
from ekklesia.acolhimento.servicos import interessados_em_grupo
from config import Config

grupos_bp = Blueprint('grupos', __name__, url_prefix='/grupos')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _membros_ativos():
    return consulta_igreja(Membro).filter(Membro.status == 'Ativo').order_by(Membro.nome).all()


@grupos_bp.route('/')
@login_required
@area_required('grupos')
def index():
    busca = request.args.get('busca', '').strip()
    query = consulta_igreja(PequenoGrupo)
    if busca:
        query = query.filter(PequenoGrupo.nome.ilike(f'%{busca}%'))
    grupos = query.order_by(PequenoGrupo.nome).all()
    interessados = interessados_em_grupo(current_user.igreja_id)
    return render_template('grupos/index.html', grupos=grupos, busca=busca,
                           total_interessados=len(interessados), ano=ano, versao=versao)


@grupos_bp.route('/criar', methods=['GET', 'POST'])
@login_required
@area_required('grupos')
def criar():
    form = PequenoGrupoForm(membros=_membros_ativos())
    if form.validate_on_submit():
        grupo = PequenoGrupo(
            igreja_id=current_user.igreja_id,
            nome=form.nome.data.strip(),
            lider_id=form.lider_id.data or None,
            local=form.local.data or None,
            imagem_url=form.imagem_url.data or None,
            dia_reuniao=form.dia_reuniao.data or None,
            horario_reuniao=form.horario_reuniao.data or None,
            membro_ids=[],
        )
        db.session.add(grupo)
        try:
            db.session.commit()
            registrar_evento_jornada(
                tipo_acao='GRUPO',
                descricao_detalhada=f'Se tornou líder do GC {grupo.nome}.' if grupo.lider else f'GC {grupo.nome} criado.',
                usuario_executor=current_user,
                membros=[grupo.lider] if grupo.lider else None,
                referencia=f'grupo:{grupo.id}',
            )
            flash('Grupo criado com sucesso!', 'success')
            return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar grupo: {e}', 'danger')
    return render_template('grupos/form.html', form=form, grupo=None, ano=ano, versao=versao)


@grupos_bp.route('/<int:grupo_id>')
@login_required
@area_required('grupos')
def detalhe(grupo_id):
    grupo = obter_da_igreja_or_404(PequenoGrupo, grupo_id)
    ids = grupo.ids_membros
    membros = consulta_igreja(Membro).filter(Membro.id.in_(ids)).order_by(Membro.nome).all() if ids else []
    disponiveis = [m for m in _membros_ativos() if m.id not in ids]
    return render_template('grupos/detalhe.html', grupo=grupo, membros=membros,
                           disponiveis=disponiveis, ano=ano, versao=versao)


@grupos_bp.route('/<int:grupo_id>/editar', methods=['GET', 'POST'])
@login_required
@area_required('grupos')
def editar(grupo_id):
    grupo = obter_da_igreja_or_404(PequenoGrupo, grupo_id)
    form = PequenoGrupoForm(obj=grupo, membros=_membros_ativos())
    if request.method == 'GET':
        form.lider_id.data = grupo.lider_id or 0
    if form.validate_on_submit():
        lider_anterior = grupo.lider_id
        grupo.nome = form.nome.data.strip()
        grupo.lider_id = form.lider_id.data or None
        grupo.local = form.local.data or None
        grupo.imagem_url = form.imagem_url.data or None
        grupo.dia_reuniao = form.dia_reuniao.data or None
        grupo.horario_reuniao = form.horario_reuniao.data or None
        try:
            db.session.commit()
            if grupo.lider_id and grupo.lider_id != lider_anterior:
                registrar_evento_jornada(
                    tipo_acao='GRUPO',
                    descricao_detalhada=f'Se tornou líder do GC {grupo.nome}.',
                    usuario_executor=current_user,
                    membros=[grupo.lider],
                    referencia=f'grupo:{grupo.id}',
                )
            flash('Grupo atualizado com sucesso!', 'success')
            return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar grupo: {e}', 'danger')
    return render_template('grupos/form.html', form=form, grupo=grupo, ano=ano, versao=versao)


@grupos_bp.route('/<int:grupo_id>/excluir', methods=['POST'])
@login_required
@area_required('grupos')
def excluir(grupo_id):
    grupo = obter_da_igreja_or_404(PequenoGrupo, grupo_id)
    nome = grupo.nome
    db.session.delete(grupo)
    try:
        db.session.commit()
        flash(f'Grupo "{nome}" foi excluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir grupo: {e}', 'danger')
    return redirect(url_for('grupos.index'))


@grupos_bp.route('/<int:grupo_id>/membros', methods=['POST'])
@login_required
@area_required('grupos')
def adicionar_membro(grupo_id):
    grupo = obter_da_igreja_or_404(PequenoGrupo, grupo_id)
    membro = consulta_igreja(Membro).filter(Membro.id == request.form.get('membro_id', type=int)).first()
    if membro is None:
        flash('Selecione um membro válido.', 'warning')
        return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))
    if not grupo.adicionar_membro(membro.id):
        flash(f'{membro.nome} já participa deste grupo.', 'info')
        return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))
    try:
        db.session.commit()
        registrar_evento_jornada(
            tipo_acao='GRUPO',
            descricao_detalhada=f'Se tornou participante do GC {grupo.nome}.',
            usuario_executor=current_user,
            membros=[membro],
            referencia=f'grupo:{grupo.id}',
        )
        flash(f'{membro.nome} adicionado(a) ao grupo!', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao adicionar participante: {e}', 'danger')
    return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))


@grupos_bp.route('/<int:grupo_id>/membros/<int:membro_id>/remover', methods=['POST'])
@login_required
@area_required('grupos')
def remover_membro(grupo_id, membro_id):
    grupo = obter_da_igreja_or_404(PequenoGrupo, grupo_id)
    membro = obter_da_igreja_or_404(Membro, membro_id)
    if not grupo.remover_membro(membro.id):
        flash('Membro não pertence a este grupo.', 'danger')
        return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))
    try:
        db.session.commit()
        registrar_evento_jornada(
            tipo_acao='GRUPO',
            descricao_detalhada=f'Deixou de ser participante do GC {grupo.nome}.',
            usuario_executor=current_user,
            membros=[membro],
            referencia=f'grupo:{grupo.id}',
        )
        flash(f'{membro.nome} removido(a) do grupo!', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao remover participante: {e}', 'danger')
    return redirect(url_for('grupos.detalhe', grupo_id=grupo.id))


@grupos_bp.route('/buscar_membros')
@login_required
@area_required('grupos')
def buscar_membros():
    termo = request.args.get('term', '')
    membros = consulta_igreja(Membro).filter(
        Membro.nome.ilike(f'%{termo}%'), Membro.status == 'Ativo',
    ).order_by(Membro.nome).limit(20).all()
    return jsonify(items=[{'id': m.id, 'text': m.nome} for m in membros])
