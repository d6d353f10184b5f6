from flask import Blueprint, render_template, redirect, url_for, flash
from flask_login import login_required, current_user
from ekklesia.extensions import db
from ekklesia.auth.models import User
from ekklesia.aconselhamento.models import Conselheiro
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404
from ekklesia.decorators import admin_required
from .forms import IgrejaForm, UsuarioForm
from config import Config

configuracoes_bp = Blueprint('configuracoes', __name__, url_prefix='/configuracoes')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


@configuracoes_bp.route('/', methods=['GET', 'POST'])
@login_required
@admin_required
def index():
    igreja = current_user.igreja
    form = IgrejaForm(obj=igreja)
    if form.validate_on_submit():
        form.populate_obj(igreja)
        try:
            db.session.commit()
            flash('Dados da igreja atualizados!', 'success')
            return redirect(url_for('configuracoes.index'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar igreja: {e}', 'danger')
    return render_template('configuracoes/index.html', form=form, igreja=igreja, ano=ano, versao=versao)


@configuracoes_bp.route('/usuarios')
@login_required
@admin_required
def usuarios():
    lista = consulta_igreja(User).order_by(User.nome).all()
    return render_template('configuracoes/usuarios.html', usuarios=lista, ano=ano, versao=versao)


def _conselheiros():
    return consulta_igreja(Conselheiro).order_by(Conselheiro.nome).all()


def _salvar_usuario(form, usuario):
    usuario.nome = form.nome.data
    usuario.email = form.email.data.strip().lower()
    usuario.papel = form.papel.data
    usuario.conselheiro_id = form.conselheiro_id.data or None
    if form.password.data:
        usuario.set_password(form.password.data)


@configuracoes_bp.route('/usuarios/novo', methods=['GET', 'POST'])
@login_required
@admin_required
def novo_usuario():
    form = UsuarioForm(conselheiros=_conselheiros())
    if form.validate_on_submit():
        usuario = User(igreja_id=current_user.igreja_id)
        _salvar_usuario(form, usuario)
        db.session.add(usuario)
        try:
            db.session.commit()
            flash(f'Usuário {usuario.email} criado!', 'success')
            return redirect(url_for('configuracoes.usuarios'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar usuário: {e}', 'danger')
    return render_template('configuracoes/usuario_form.html', form=form, usuario=None, ano=ano, versao=versao)


@configuracoes_bp.route('/usuarios/<int:user_id>/editar', methods=['GET', 'POST'])
@login_required
@admin_required
def editar_usuario(user_id):
    usuario = obter_da_igreja_or_404(User, user_id)
    form = UsuarioForm(obj=usuario, conselheiros=_conselheiros(), usuario=usuario)
    if form.validate_on_submit():
        if usuario.id == current_user.id and form.papel.data != 'Administrador':
            flash('Você não pode remover seu próprio acesso de administrador.', 'warning')
            return redirect(url_for('configuracoes.editar_usuario', user_id=user_id))
        _salvar_usuario(form, usuario)
        try:
            db.session.commit()
            flash('Usuário atualizado com sucesso!', 'success')
            return redirect(url_for('configuracoes.usuarios'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar usuário: {e}', 'danger')
    elif not form.is_submitted():
        form.conselheiro_id.data = usuario.conselheiro_id or 0
    return render_template('configuracoes/usuario_form.html', form=form, usuario=usuario, ano=ano, versao=versao)


@configuracoes_bp.route('/usuarios/<int:user_id>/excluir', methods=['POST'])
@login_required
@admin_required
def excluir_usuario(user_id):
    if user_id == current_user.id:
        flash('Você não pode excluir sua própria conta por aqui.', 'danger')
        return redirect(url_for('configuracoes.usuarios'))
    usuario = obter_da_igreja_or_404(User, user_id)
    if usuario.igreja.dono_id == usuario.id:
        flash('O responsável pela igreja não pode ser excluído.', 'warning')
        return redirect(url_for('configuracoes.usuarios'))
    try:
        db.session.delete(usuario)
        db.session.commit()
        flash(f'Usuário {usuario.email} excluído com sucesso!', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir usuário: {e}', 'danger')
    return redirect(url_for('configuracoes.usuarios'))


@configuracoes_bp.route('/papeis')
@login_required
@admin_required
def papeis():
    linhas = []
    for papel in Config.PAPEIS_USUARIO:
        if papel in Config.PAPEIS_ACESSO_TOTAL:
            areas = ['Todas as áreas']
        else:
            areas = Config.AREAS_POR_PAPEL.get(papel, [])
        total = consulta_igreja(User).filter(User.papel == papel).count()
        linhas.append({'papel': papel, 'areas': areas, 'usuarios': total})
    return render_template('configuracoes/papeis.html', papeis=linhas, ano=ano, versao=versao)
