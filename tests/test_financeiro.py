from datetime import date

import pytest

from ekklesia.extensions import db
from ekklesia.financeiro import servicos
from ekklesia.financeiro.models import Transacao, CategoriaFinanceira


def _lancar(igreja, descricao, valor, tipo='Entrada', categoria='Dízimos', dia=date(2025, 3, 2), status='Pendente'):
    t = Transacao(igreja_id=igreja.id, descricao=descricao, valor=valor, tipo=tipo,
                  categoria=categoria, data=dia, status=status)
    db.session.add(t)
    db.session.commit()
    return t


@pytest.fixture
def lancamentos(igreja):
    return [
        _lancar(igreja, 'Dízimos de março', 1500.0),
        _lancar(igreja, 'Oferta missionária', 300.5, categoria='Missões'),
        _lancar(igreja, 'Conta de luz', 420.25, tipo='Saída', categoria='Energia e Água', dia=date(2025, 3, 10)),
        _lancar(igreja, 'Aluguel de abril', 1000.0, tipo='Saída', categoria='Aluguel', dia=date(2025, 4, 5)),
    ]


def test_categorias_padrao_sao_idempotentes(igreja):
    criadas = servicos.garantir_categorias_padrao(igreja.id)
    assert criadas > 0
    assert servicos.garantir_categorias_padrao(igreja.id) == 0
    assert {c.tipo for c in servicos.categorias_da_igreja(igreja.id, 'Saída')} == {'Saída'}


def test_criar_e_excluir_categoria(igreja, lancamentos):
    with pytest.raises(ValueError, match='Tipo inválido'):
        servicos.criar_categoria(igreja.id, 'Cantina', 'Transferência')
    cantina = servicos.criar_categoria(igreja.id, 'Cantina', 'Entrada')
    with pytest.raises(ValueError, match='já existe'):
        servicos.criar_categoria(igreja.id, ' Cantina ', 'Entrada')
    servicos.excluir_categoria(cantina)

    dizimos = servicos.criar_categoria(igreja.id, 'Dízimos', 'Entrada')
    with pytest.raises(ValueError, match='1 lançamento'):
        servicos.excluir_categoria(dizimos)


def test_totais_da_consulta_filtrada(igreja, lancamentos):
    query = Transacao.query.filter_by(igreja_id=igreja.id)
    assert servicos.totais(query) == {'entradas': 1800.5, 'saidas': 1420.25, 'saldo': 380.25}

    marco = servicos.filtrar(query, data_inicial=date(2025, 3, 1), data_final=date(2025, 3, 31))
    assert servicos.totais(marco)['saldo'] == 1380.25
    assert servicos.filtrar(query, busca='luz').count() == 1
    assert servicos.filtrar(query, tipo='Saída', categoria='Aluguel').one().descricao == 'Aluguel de abril'


def test_resumo_por_mes_e_categoria(lancamentos):
    resumo = servicos.resumo(lancamentos)
    assert resumo['labels_meses'] == ['Mar/2025', 'Abr/2025']
    assert resumo['serie_entradas'] == [1800.5, 0.0]
    assert resumo['serie_saidas'] == [420.25, 1000.0]
    assert list(resumo['por_categoria']['Saída']) == ['Aluguel', 'Energia e Água']


def test_alternar_conciliacao(lancamentos):
    assert servicos.alternar_conciliacao(lancamentos[0]) == 'Conciliado'
    assert servicos.alternar_conciliacao(lancamentos[0]) == 'Pendente'


def test_novo_lancamento_valida_tipo_da_categoria(admin_client, igreja):
    servicos.garantir_categorias_padrao(igreja.id)
    dados = {'descricao': 'Oferta especial', 'valor': '250.00', 'data_lanc': '2025-03-09',
             'tipo': 'Saída', 'categoria': 'Ofertas', 'status': 'Pendente'}

    resposta = admin_client.post('/financeiro/novo', data=dados)
    assert resposta.status_code == 200
    assert Transacao.query.count() == 0

    dados['tipo'] = 'Entrada'
    resposta = admin_client.post('/financeiro/novo', data=dados)
    assert resposta.status_code == 302
    assert Transacao.query.one().valor == 250.0


def test_lista_filtrada_e_exportacao(admin_client, lancamentos):
    pagina = admin_client.get('/financeiro/lancamentos', query_string={'tipo_filtro': 'Saída'})
    texto = pagina.get_data(as_text=True)
    assert 'Conta de luz' in texto
    assert 'Dízimos de março' not in texto

    planilha = admin_client.get('/financeiro/lancamentos/excel', query_string={'data_inicial': '2025-03-01'})
    assert planilha.status_code == 200
    assert planilha.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    assert 'lancamentos_de_2025-03-01.xlsx' in planilha.headers['Content-Disposition']
    assert planilha.data[:2] == b'PK'


def test_exportacao_sem_lancamentos(igreja):
    conteudo = servicos.exportar_excel([]).getvalue()
    assert conteudo[:2] == b'PK'


def test_lancamento_de_outra_igreja(admin_client, outra_igreja):
    alheio = _lancar(outra_igreja, 'Alheio', 10.0)
    assert admin_client.post(f'/financeiro/{alheio.id}/excluir').status_code == 404
    assert db.session.get(Transacao, alheio.id) is not None


def test_painel_financeiro(admin_client, lancamentos):
    assert admin_client.get('/financeiro/').status_code == 200
    assert CategoriaFinanceira.query.count() == 0
