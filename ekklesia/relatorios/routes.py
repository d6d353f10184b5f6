from flask import Blueprint, render_template, request, flash, redirect, url_for, send_file, current_app
from flask_login import login_required, current_user
from datetime import datetime, date
import io
from ekklesia.decorators import area_required
from ekklesia.igrejas.models import consulta_igreja
from ekklesia.membresia.models import Membro
from ekklesia.financeiro.models import Transacao
from ekklesia.financeiro.servicos import filtrar, resumo
from ekklesia.aconselhamento.servicos import agendamentos_da_igreja
from ekklesia.aconselhamento.estatisticas import estatisticas_completas
from . import pdf
from config import Config

relatorios_bp = Blueprint('relatorios', __name__, url_prefix='/relatorios')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _arquivo_pdf(conteudo, nome):
    return send_file(io.BytesIO(conteudo), mimetype='application/pdf', as_attachment=True,
                     download_name=f'{nome}_{date.today().strftime("%Y%m%d")}.pdf')


def _data_arg(nome):
    valor = request.args.get(nome, '')
    if not valor:
        return None
    return datetime.strptime(valor, '%Y-%m-%d').date()


@relatorios_bp.route('/')
@login_required
@area_required('estatisticas')
def index():
    return render_template('relatorios/index.html', hoje=date.today(), ano=ano, versao=versao)


@relatorios_bp.route('/membros.pdf')
@login_required
@area_required('estatisticas')
def membros():
    query = consulta_igreja(Membro)
    status = request.args.get('status', '')
    if status:
        query = query.filter(Membro.status == status)
    lista = query.order_by(Membro.nome).all()
    conteudo = pdf.gerar_pdf_membros(current_user.igreja.nome, lista)
    current_app.logger.info(f'Relatório de membros gerado por {current_user.email} ({len(lista)} registros)')
    return _arquivo_pdf(conteudo, 'membros')


@relatorios_bp.route('/financeiro.pdf')
@login_required
@area_required('financeiro')
def financeiro():
    try:
        data_inicial = _data_arg('data_inicial')
        data_final = _data_arg('data_final')
    except ValueError:
        flash('Formato de data inválido.', 'danger')
        return redirect(url_for('relatorios.index'))
    if data_inicial and data_final and data_final < data_inicial:
        flash('A data final não pode ser anterior à data inicial.', 'warning')
        return redirect(url_for('relatorios.index'))

    transacoes = filtrar(consulta_igreja(Transacao), data_inicial=data_inicial, data_final=data_final) \
        .order_by(Transacao.data).all()
    if data_inicial or data_final:
        periodo = f'{data_inicial.strftime("%d/%m/%Y") if data_inicial else "início"} a ' \
                  f'{data_final.strftime("%d/%m/%Y") if data_final else "hoje"}'
    else:
        periodo = 'Todo o período'
    conteudo = pdf.gerar_pdf_financeiro(current_user.igreja.nome, resumo(transacoes), periodo)
    return _arquivo_pdf(conteudo, 'financeiro')


@relatorios_bp.route('/aconselhamento.pdf')
@login_required
@area_required('aconselhamento')
def aconselhamento():
    mes = request.args.get('mes', '') or None
    estatisticas = estatisticas_completas(agendamentos_da_igreja(current_user.igreja_id), mes)
    conteudo = pdf.gerar_pdf_aconselhamento(current_user.igreja.nome, estatisticas, mes)
    return _arquivo_pdf(conteudo, 'aconselhamento')
