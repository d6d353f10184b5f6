import io

import pandas as pd
from sqlalchemy import func

from ekklesia.extensions import db
from config import Config
from .models import Transacao, CategoriaFinanceira

MESES = {1: 'Jan', 2: 'Fev', 3: 'Mar', 4: 'Abr', 5: 'Mai', 6: 'Jun',
         7: 'Jul', 8: 'Ago', 9: 'Set', 10: 'Out', 11: 'Nov', 12: 'Dez'}


def categorias_da_igreja(igreja_id, tipo=None):
    query = CategoriaFinanceira.query.filter_by(igreja_id=igreja_id)
    if tipo:
        query = query.filter_by(tipo=tipo)
    return query.order_by(CategoriaFinanceira.tipo, CategoriaFinanceira.nome).all()


def garantir_categorias_padrao(igreja_id):
    existentes = {(c.nome, c.tipo) for c in categorias_da_igreja(igreja_id)}
    novas = 0
    for nome, tipo in Config.CATEGORIAS_PADRAO:
        if (nome, tipo) not in existentes:
            db.session.add(CategoriaFinanceira(igreja_id=igreja_id, nome=nome, tipo=tipo))
            novas += 1
    if novas:
        db.session.commit()
    return novas


def criar_categoria(igreja_id, nome, tipo):
    nome = (nome or '').strip()
    if not nome:
        raise ValueError('Informe o nome da categoria.')
    if tipo not in Config.TIPOS_TRANSACAO:
        raise ValueError(f'Tipo inválido: {tipo}')
    if CategoriaFinanceira.query.filter_by(igreja_id=igreja_id, nome=nome, tipo=tipo).first():
        raise ValueError('Esta categoria já existe.')
    categoria = CategoriaFinanceira(igreja_id=igreja_id, nome=nome, tipo=tipo)
    db.session.add(categoria)
    db.session.commit()
    return categoria


def excluir_categoria(categoria):
    em_uso = Transacao.query.filter_by(igreja_id=categoria.igreja_id, categoria=categoria.nome,
                                       tipo=categoria.tipo).count()
    if em_uso:
        raise ValueError(f'A categoria possui {em_uso} lançamento(s) e não pode ser excluída.')
    db.session.delete(categoria)
    db.session.commit()


def filtrar(query, busca=None, tipo=None, status=None, categoria=None, data_inicial=None, data_final=None):
    if busca:
        query = query.filter(Transacao.descricao.ilike(f'%{busca}%'))
    if tipo:
        query = query.filter(Transacao.tipo == tipo)
    if status:
        query = query.filter(Transacao.status == status)
    if categoria:
        query = query.filter(Transacao.categoria == categoria)
    if data_inicial:
        query = query.filter(Transacao.data >= data_inicial)
    if data_final:
        query = query.filter(Transacao.data <= data_final)
    return query


def totais(query):
    linhas = query.with_entities(Transacao.tipo, func.sum(Transacao.valor)).group_by(Transacao.tipo).all()
    por_tipo = {tipo: round(float(total or 0), 2) for tipo, total in linhas}
    entradas = por_tipo.get('Entrada', 0.0)
    saidas = por_tipo.get('Saída', 0.0)
    return {'entradas': entradas, 'saidas': saidas, 'saldo': round(entradas - saidas, 2)}


def resumo(transacoes):
    """Totais e séries para os gráficos a partir de uma lista de transações."""
    entradas = saidas = 0.0
    por_categoria = {}
    por_mes = {}
    for t in transacoes:
        valor = float(t.valor or 0)
        chave_mes = (t.data.year, t.data.month)
        mes = por_mes.setdefault(chave_mes, {'Entrada': 0.0, 'Saída': 0.0})
        mes[t.tipo] = mes.get(t.tipo, 0.0) + valor
        if t.tipo == 'Entrada':
            entradas += valor
        else:
            saidas += valor
        categoria = por_categoria.setdefault(t.tipo, {})
        nome = t.categoria or 'Sem categoria'
        categoria[nome] = categoria.get(nome, 0.0) + valor

    meses = sorted(por_mes)
    return {
        'entradas': round(entradas, 2),
        'saidas': round(saidas, 2),
        'saldo': round(entradas - saidas, 2),
        'por_categoria': {
            tipo: dict(sorted(((k, round(v, 2)) for k, v in valores.items()), key=lambda kv: -kv[1]))
            for tipo, valores in por_categoria.items()
        },
        'labels_meses': [f'{MESES[m]}/{a}' for a, m in meses],
        'serie_entradas': [round(por_mes[k]['Entrada'], 2) for k in meses],
        'serie_saidas': [round(por_mes[k]['Saída'], 2) for k in meses],
    }


def alternar_conciliacao(transacao):
    transacao.status = 'Pendente' if transacao.status == 'Conciliado' else 'Conciliado'
    db.session.commit()
    return transacao.status


def exportar_excel(transacoes):
    relatorio_dados = []
    for t in transacoes:
        relatorio_dados.append({
            'Data': t.data.strftime('%d/%m/%Y'),
            'Descrição': t.descricao,
            'Tipo': t.tipo,
            'Categoria': t.categoria or '',
            'Valor': t.valor,
            'Status': t.status,
            'Observações': t.observacoes if t.observacoes else '',
        })

    df_final = pd.DataFrame(relatorio_dados, columns=['Data', 'Descrição', 'Tipo', 'Categoria', 'Valor', 'Status', 'Observações'])

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        df_final.to_excel(writer, index=False, sheet_name='Lançamentos')
        worksheet = writer.sheets['Lançamentos']
        for i, col in enumerate(df_final.columns):
            maior = df_final[col].astype(str).map(len).max() if not df_final.empty else 0
            worksheet.set_column(i, i, max(maior, len(col)) + 2)
    output.seek(0)
    return output
