from flask import Blueprint, flash, redirect, url_for, request, render_template
from flask_login import login_required
from datetime import datetime
from ekklesia.extensions import db
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404
from ekklesia.decorators import admin_required, area_required
from .models import JornadaEvento
from config import Config

jornada_bp = Blueprint('jornada', __name__, url_prefix='/jornada')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


@jornada_bp.route('/')
@login_required
@area_required('historico')
def index():
    page = request.args.get('page', 1, type=int)
    tipo = request.args.get('tipo', '')
    categoria = request.args.get('categoria', '')
    busca = request.args.get('busca', '').strip()
    data_inicial = request.args.get('data_inicial', '')
    data_final = request.args.get('data_final', '')

    query = consulta_igreja(JornadaEvento)
    if tipo:
        query = query.filter(JornadaEvento.tipo_acao == tipo)
    if categoria:
        tipos = [k for k, v in Config.JORNADA.items() if v['categoria'] == categoria]
        query = query.filter(JornadaEvento.tipo_acao.in_(tipos))
    if busca:
        query = query.filter(JornadaEvento.descricao_detalhada.ilike(f'%{busca}%'))
    try:
        if data_inicial:
            query = query.filter(JornadaEvento.data_evento >= datetime.strptime(data_inicial, '%Y-%m-%d'))
        if data_final:
            fim = datetime.strptime(data_final, '%Y-%m-%d').replace(hour=23, minute=59, second=59)
            query = query.filter(JornadaEvento.data_evento <= fim)
    except ValueError:
        flash('Formato de data inválido.', 'danger')

    pagination = query.order_by(JornadaEvento.data_evento.desc()).paginate(
        page=page, per_page=Config.POR_PAGINA, error_out=False
    )
    categorias = sorted({v['categoria'] for v in Config.JORNADA.values()})
    return render_template('jornada/index.html', eventos=pagination.items, pagination=pagination,
                           tipos=Config.JORNADA, categorias=categorias,
                           filtros={k: v for k, v in request.args.items() if k != 'page'},
                           ano=ano, versao=versao)


@jornada_bp.route('/<int:event_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_jornada_evento(event_id):
    evento = obter_da_igreja_or_404(JornadaEvento, event_id)

    try:
        db.session.delete(evento)
        db.session.commit()
        flash('Evento da jornada excluído com sucesso!', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir o evento da jornada: {e}', 'danger')

    return redirect(request.referrer or url_for('jornada.index'))
