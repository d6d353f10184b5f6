from functools import wraps
from flask import flash, redirect, url_for
from flask_login import current_user


def area_required(area):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated or not current_user.pode_ver(area):
                flash('Você não tem permissão para acessar esta página.', 'danger')
                return redirect(url_for('main.index'))
            if not current_user.igreja_id:
                flash('Associe sua conta a uma igreja para continuar.', 'warning')
                return redirect(url_for('auth.associar_igreja'))
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or current_user.papel != 'Administrador':
            flash('Apenas administradores podem acessar esta página.', 'danger')
            return redirect(url_for('main.index'))
        return f(*args, **kwargs)
    return decorated_function


def conselheiro_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.conselheiro_id:
            flash('Seu usuário não está vinculado a um perfil de conselheiro.', 'warning')
            return redirect(url_for('main.index'))
        return f(*args, **kwargs)
    return decorated_function
