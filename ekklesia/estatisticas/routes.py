from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify
from flask_login import login_required, current_user
from datetime import date, timedelta
from ekklesia.extensions import db
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404
from .models import RegistroPresenca
from .forms import PresencaForm
from .servicos import serie_presenca, resumo_presenca
from config import Config

estatisticas_bp = Blueprint('estatisticas', __name__, url_prefix='/estatisticas')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _registros_do_periodo(dias):
    inicio = date.today() - timedelta(days=dias)
    return consulta_igreja(RegistroPresenca).filter(RegistroPresenca.data_culto >= inicio) \
        .order_by(RegistroPresenca.data_culto.desc()).all()


@estatisticas_bp.route('/', methods=['GET', 'POST'])
@login_required
@area_required('estatisticas')
def index():
    form = PresencaForm()
    if form.validate_on_submit():
        registro = RegistroPresenca(
            igreja_id=current_user.igreja_id,
            data_culto=form.data_culto.data,
            tipo_culto=form.tipo_culto.data,
            adultos=form.adultos.data,
            criancas=form.criancas.data,
            visitantes=form.visitantes.data,
        )
        db.session.add(registro)
        try:
            db.session.commit()
            flash('Registro de presença salvo!', 'success')
            return redirect(url_for('estatisticas.index'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao salvar registro: {e}', 'danger')

    dias = request.args.get('dias', 90, type=int)
    registros = _registros_do_periodo(dias)
    return render_template('estatisticas/index.html', form=form, registros=registros, dias=dias,
                           resumo=resumo_presenca(registros), serie=serie_presenca(registros),
                           ano=ano, versao=versao)


@estatisticas_bp.route('/<int:registro_id>/editar', methods=['GET', 'POST'])
@login_required
@area_required('estatisticas')
def editar(registro_id):
    registro = obter_da_igreja_or_404(RegistroPresenca, registro_id)
    form = PresencaForm(obj=registro)
    if form.validate_on_submit():
        form.populate_obj(registro)
        try:
            db.session.commit()
            flash('Registro atualizado!', 'success')
            return redirect(url_for('estatisticas.index'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar registro: {e}', 'danger')
    return render_template('estatisticas/form.html', form=form, registro=registro, ano=ano, versao=versao)


@estatisticas_bp.route('/<int:registro_id>/excluir', methods=['POST'])
@login_required
@area_required('estatisticas')
def excluir(registro_id):
    registro = obter_da_igreja_or_404(RegistroPresenca, registro_id)
    try:
        db.session.delete(registro)
        db.session.commit()
        flash('Registro excluído.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir registro: {e}', 'danger')
    return redirect(url_for('estatisticas.index'))


@estatisticas_bp.route('/serie')
@login_required
@area_required('estatisticas')
def serie():
    return jsonify(serie_presenca(_registros_do_periodo(request.args.get('dias', 90, type=int))))
