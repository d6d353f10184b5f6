from flask import Blueprint, render_template, url_for, redirect
from flask_login import login_required, current_user
from ekklesia import painel
from ekklesia.estatisticas.models import RegistroPresenca
from ekklesia.estatisticas.servicos import serie_presenca
from config import Config

main_bp = Blueprint('main', __name__)
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


@main_bp.route('/')
@login_required
def index():
    if current_user.papel == 'Conselheiro':
        return redirect(url_for('aconselhamento.minha_agenda'))
    if current_user.papel == 'Consolidador':
        return redirect(url_for('acolhimento.index'))
    if not current_user.igreja_id:
        return redirect(url_for('auth.associar_igreja'))

    igreja_id = current_user.igreja_id
    presencas = RegistroPresenca.query.filter_by(igreja_id=igreja_id) \
        .order_by(RegistroPresenca.data_culto.desc()).limit(12).all()

    return render_template(
        'base/main.html',
        metricas=painel.metricas(igreja_id),
        demografia=painel.demografia(igreja_id),
        crescimento=painel.crescimento(igreja_id),
        presenca=serie_presenca(presencas),
        atividades=painel.atividades_recentes(igreja_id) if current_user.acesso_total else [],
        ano=ano, versao=versao,
    )
