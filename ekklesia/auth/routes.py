from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_user, logout_user, login_required, current_user
from datetime import datetime, timezone
from .forms import LoginForm, RegistroForm, RegistroIgrejaForm, AssociarIgrejaForm
from .models import User
from ekklesia.extensions import db, login_manager
from ekklesia.igrejas.models import Igreja
from ekklesia.igrejas.servicos import criar_igreja_com_dono, associar_usuario
from config import Config

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


def _proxima_pagina():
    next_page = request.args.get('next')
    if next_page and next_page.startswith('/') and not next_page.startswith('//'):
        return next_page
    return url_for('main.index')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))
    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(email=form.email.data.strip().lower()).first()
        if user and user.check_password(form.password.data):
            login_user(user, remember=form.lembrar.data)
            if user.membro:
                user.membro.visto_em = datetime.now(timezone.utc)
                db.session.commit()
            return redirect(_proxima_pagina())
        else:
            flash('Usuário ou senha inválidos.', 'warning')
    return render_template('auth/login.html', form=form, ano=ano, versao=versao)


@auth_bp.route('/logout')
@login_required
def logout():
    logout_user()
    flash('Você foi desconectado.', 'info')
    return redirect(url_for('auth.login'))


@auth_bp.route('/registrar', methods=['GET', 'POST'])
def registrar():
    form = RegistroForm()
    if form.validate_on_submit():
        user = User(nome=form.nome.data, email=form.email.data.strip().lower(), papel='Membro')
        user.set_password(form.password.data)
        db.session.add(user)
        try:
            db.session.commit()
            flash('Conta criada com sucesso! Faça login e associe-se à sua igreja.', 'success')
            return redirect(url_for('auth.login'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar conta: {e}', 'danger')
    return render_template('auth/registrar.html', form=form, ano=ano, versao=versao)


@auth_bp.route('/registrar-igreja', methods=['GET', 'POST'])
def registrar_igreja():
    form = RegistroIgrejaForm()
    if form.validate_on_submit():
        try:
            igreja, user = criar_igreja_com_dono(
                form.nome_igreja.data, form.nome.data, form.email.data, form.password.data,
                cnpj=form.cnpj.data, telefone=form.telefone.data, endereco=form.endereco.data,
            )
            login_user(user)
            flash(f'Igreja {igreja.nome} criada! Bem-vindo ao Ekklesia Hub.', 'success')
            return redirect(url_for('main.index'))
        except ValueError as e:
            db.session.rollback()
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar igreja: {e}', 'danger')
    return render_template('auth/registrar_igreja.html', form=form, ano=ano, versao=versao)


@auth_bp.route('/associar-igreja', methods=['GET', 'POST'])
@login_required
def associar_igreja():
    if current_user.igreja_id:
        return redirect(url_for('main.index'))
    form = AssociarIgrejaForm(igrejas=Igreja.query.order_by(Igreja.nome).all())
    if form.validate_on_submit():
        igreja = db.session.get(Igreja, form.igreja_id.data)
        if igreja is None:
            flash('Igreja não encontrada.', 'warning')
        else:
            try:
                associar_usuario(current_user, igreja)
                flash(f'Conta associada à igreja {igreja.nome}.', 'success')
                return redirect(url_for('main.index'))
            except ValueError as e:
                flash(str(e), 'warning')
            except Exception as e:
                db.session.rollback()
                flash(f'Erro ao associar igreja: {e}', 'danger')
    return render_template('auth/associar_igreja.html', form=form, ano=ano, versao=versao)
