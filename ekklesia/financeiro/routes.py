from flask import Blueprint, render_template, redirect, url_for, request, flash, send_file
from flask_login import login_required, current_user
from ekklesia.extensions import db
from datetime import date
from .models import Transacao, CategoriaFinanceira
from .forms import TransacaoForm, TransacaoFilterForm, CategoriaFinanceiraForm
from . import servicos
from config import Config
from ekklesia.jornada.models import registrar_evento_jornada
from ekklesia.igrejas.models import consulta_igreja, obter_da_igreja_or_404
from ekklesia.filters import format_currency
from ekklesia.decorators import area_required

financeiro_bp = Blueprint('financeiro', __name__, url_prefix='/financeiro')
ano = Config.ANO_ATUAL
versao = Config.VERSAO_APP


def _query_filtrada(filter_form):
    query = consulta_igreja(Transacao)
    if filter_form.validate():
        query = servicos.filtrar(
            query,
            busca=filter_form.busca.data,
            tipo=filter_form.tipo_filtro.data,
            status=filter_form.status_filtro.data,
            categoria=filter_form.categoria_filtro.data,
            data_inicial=filter_form.data_inicial.data,
            data_final=filter_form.data_final.data,
        )
    else:
        for field_name, errors in filter_form.errors.items():
            for error in errors:
                if field_name != 'csrf_token':
                    field_obj = getattr(filter_form, field_name, None)
                    field_label = field_obj.label.text if field_obj and hasattr(field_obj, 'label') else field_name
                    flash(f"Erro no filtro '{field_label}': {error}", 'danger')
    return query


@financeiro_bp.route('/')
@login_required
@area_required('financeiro')
def index():
    hoje = date.today()
    inicio_ano = date(hoje.year, 1, 1)
    transacoes_ano = consulta_igreja(Transacao).filter(Transacao.data >= inicio_ano).all()
    do_mes = [t for t in transacoes_ano if t.data.month == hoje.month]
    return render_template(
        'financeiro/index.html',
        resumo_mes=servicos.resumo(do_mes),
        resumo_ano=servicos.resumo(transacoes_ano),
        pendentes=sum(1 for t in transacoes_ano if t.status == 'Pendente'),
        ano=ano, versao=versao,
    )


@financeiro_bp.route('/lancamentos')
@login_required
@area_required('financeiro')
def lancamentos():
    page = request.args.get('page', 1, type=int)
    categorias = servicos.categorias_da_igreja(current_user.igreja_id)
    filter_form = TransacaoFilterForm(request.args, meta={'csrf': False}, categorias=categorias)
    query = _query_filtrada(filter_form)

    totais = servicos.totais(query)
    pagination = query.order_by(Transacao.data.desc(), Transacao.id.desc()).paginate(
        page=page, per_page=Config.POR_PAGINA, error_out=False
    )
    return render_template(
        'financeiro/lancamentos.html',
        transacoes=pagination.items,
        pagination=pagination,
        totais=totais,
        filter_form=filter_form,
        filtros={k: v for k, v in request.args.items() if k != 'page'},
        ano=ano, versao=versao,
    )


@financeiro_bp.route('/lancamentos/excel')
@login_required
@area_required('financeiro')
def exportar_excel():
    categorias = servicos.categorias_da_igreja(current_user.igreja_id)
    filter_form = TransacaoFilterForm(request.args, meta={'csrf': False}, categorias=categorias)
    transacoes = _query_filtrada(filter_form).order_by(Transacao.data.desc(), Transacao.id.desc()).all()
    output = servicos.exportar_excel(transacoes)

    filename_parts = ['lancamentos']
    if filter_form.tipo_filtro.data:
        filename_parts.append(filter_form.tipo_filtro.data.lower())
    if filter_form.data_inicial.data:
        filename_parts.append(f'de_{filter_form.data_inicial.data.isoformat()}')
    if filter_form.data_final.data:
        filename_parts.append(f'ate_{filter_form.data_final.data.isoformat()}')

    return send_file(output,
                     download_name='_'.join(filename_parts) + '.xlsx',
                     as_attachment=True,
                     mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')


@financeiro_bp.route('/novo', methods=['GET', 'POST'])
@login_required
@area_required('financeiro')
def novo():
    form = TransacaoForm(categorias=servicos.categorias_da_igreja(current_user.igreja_id))
    if request.method == 'GET':
        form.data_lanc.data = date.today()
    if form.validate_on_submit():
        transacao = Transacao(
            igreja_id=current_user.igreja_id,
            descricao=form.descricao.data,
            valor=round(form.valor.data, 2),
            data=form.data_lanc.data,
            tipo=form.tipo.data,
            categoria=form.categoria.data,
            status=form.status.data,
            observacoes=form.observacoes.data or None,
        )
        db.session.add(transacao)
        try:
            db.session.commit()
            registrar_evento_jornada(
                tipo_acao='TRANSACAO',
                descricao_detalhada=f'{transacao.tipo} "{transacao.descricao}" de {format_currency(transacao.valor)} lançada.',
                usuario_executor=current_user,
                referencia=f'transacao:{transacao.id}',
            )
            flash('Lançamento registrado com sucesso!', 'success')
            return redirect(url_for('financeiro.lancamentos'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao registrar lançamento: {e}', 'danger')
    return render_template('financeiro/form.html', form=form, transacao=None, ano=ano, versao=versao)


@financeiro_bp.route('/<int:id>/editar', methods=['GET', 'POST'])
@login_required
@area_required('financeiro')
def editar(id):
    transacao = obter_da_igreja_or_404(Transacao, id)
    form = TransacaoForm(obj=transacao, categorias=servicos.categorias_da_igreja(current_user.igreja_id))
    valor_anterior = transacao.valor
    if request.method == 'GET':
        form.data_lanc.data = transacao.data
    if form.validate_on_submit():
        transacao.descricao = form.descricao.data
        transacao.valor = round(form.valor.data, 2)
        transacao.data = form.data_lanc.data
        transacao.tipo = form.tipo.data
        transacao.categoria = form.categoria.data
        transacao.status = form.status.data
        transacao.observacoes = form.observacoes.data or None
        try:
            db.session.commit()
            descricao = f'Lançamento "{transacao.descricao}" atualizado.'
            if valor_anterior != transacao.valor:
                descricao += f' Valor: {format_currency(valor_anterior)} -> {format_currency(transacao.valor)}'
            registrar_evento_jornada(
                tipo_acao='TRANSACAO',
                descricao_detalhada=descricao,
                usuario_executor=current_user,
                referencia=f'transacao:{transacao.id}',
            )
            flash('Lançamento atualizado com sucesso!', 'success')
            return redirect(url_for('financeiro.lancamentos'))
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao atualizar lançamento: {e}', 'danger')
    return render_template('financeiro/form.html', form=form, transacao=transacao, ano=ano, versao=versao)


@financeiro_bp.route('/<int:id>/excluir', methods=['POST'])
@login_required
@area_required('financeiro')
def excluir(id):
    transacao = obter_da_igreja_or_404(Transacao, id)
    descricao, valor = transacao.descricao, transacao.valor
    db.session.delete(transacao)
    try:
        db.session.commit()
        registrar_evento_jornada(
            tipo_acao='TRANSACAO_EXCLUIDA',
            descricao_detalhada=f'Lançamento "{descricao}" ({format_currency(valor)}) excluído.',
            usuario_executor=current_user,
        )
        flash('Lançamento excluído com sucesso!', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir lançamento: {e}', 'danger')
    return redirect(url_for('financeiro.lancamentos'))


@financeiro_bp.route('/<int:id>/conciliar', methods=['POST'])
@login_required
@area_required('financeiro')
def alternar_conciliacao(id):
    transacao = obter_da_igreja_or_404(Transacao, id)
    try:
        status = servicos.alternar_conciliacao(transacao)
        flash(f'Lançamento marcado como {status}.', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao atualizar lançamento: {e}', 'danger')
    return redirect(request.referrer or url_for('financeiro.lancamentos'))


@financeiro_bp.route('/categorias', methods=['GET', 'POST'])
@login_required
@area_required('financeiro')
def categorias():
    form = CategoriaFinanceiraForm()
    if form.validate_on_submit():
        try:
            servicos.criar_categoria(current_user.igreja_id, form.nome.data, form.tipo.data)
            flash('Nova categoria criada com sucesso!', 'success')
            return redirect(url_for('financeiro.categorias'))
        except ValueError as e:
            flash(str(e), 'warning')
        except Exception as e:
            db.session.rollback()
            flash(f'Erro ao criar categoria: {e}', 'danger')
    return render_template('financeiro/categorias.html', form=form,
                           categorias=servicos.categorias_da_igreja(current_user.igreja_id),
                           ano=ano, versao=versao)


@financeiro_bp.route('/categorias/padrao', methods=['POST'])
@login_required
@area_required('financeiro')
def categorias_padrao():
    try:
        novas = servicos.garantir_categorias_padrao(current_user.igreja_id)
        flash(f'{novas} categoria(s) padrão adicionada(s).', 'success')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao criar categorias: {e}', 'danger')
    return redirect(url_for('financeiro.categorias'))


@financeiro_bp.route('/categorias/<int:id>/excluir', methods=['POST'])
@login_required
@area_required('financeiro')
def excluir_categoria(id):
    categoria = obter_da_igreja_or_404(CategoriaFinanceira, id)
    try:
        servicos.excluir_categoria(categoria)
        flash('Categoria excluída.', 'success')
    except ValueError as e:
        flash(str(e), 'warning')
    except Exception as e:
        db.session.rollback()
        flash(f'Erro ao excluir categoria: {e}', 'danger')
    return redirect(url_for('financeiro.categorias'))
