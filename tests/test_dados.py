from datetime import datetime

from ekklesia.registros.dados import (carregar_json, lista_de, ids_de, adicionar_atividade,
                                      atualizar_dados, parse_data_hora, data_hora_iso)


def test_carregar_json_aceita_string_dict_e_lixo():
    assert carregar_json('{"a": 1}') == {'a': 1}
    assert carregar_json({'a': 1}) == {'a': 1}
    assert carregar_json('{quebrado', {}) == {}
    assert carregar_json(None, []) == []
    assert carregar_json('[1, 2]', {}) == {}


def test_carregar_json_devolve_copia():
    original = {'meetings': [{'id': 1}]}
    copia = carregar_json(original)
    copia['meetings'].append({'id': 2})
    assert len(original['meetings']) == 1


def test_lista_de_e_ids_de():
    assert lista_de(None) == []
    assert lista_de('["1", "2"]') == ['1', '2']
    assert lista_de('avulso') == ['avulso']
    assert ids_de(['1', 2, 'x', 2, None]) == [1, 2]


def test_adicionar_atividade_sem_usuario_registra_sistema():
    dados = adicionar_atividade('{"topic": "Casamento"}', 'created', 'Criado.')
    assert dados['topic'] == 'Casamento'
    assert len(dados['activities']) == 1
    atividade = dados['activities'][0]
    assert atividade['user'] == 'Sistema'
    assert atividade['action'] == 'created'
    assert atividade['timestamp'].endswith('+00:00')


def test_atualizar_dados_nao_altera_original():
    original = {'a': 1}
    novo = atualizar_dados(original, b=2)
    assert novo == {'a': 1, 'b': 2}
    assert original == {'a': 1}


def test_parse_data_hora_converte_utc_para_fuso_da_igreja():
    assert parse_data_hora('2025-03-10T12:00:00Z') == datetime(2025, 3, 10, 9, 0)
    assert parse_data_hora('2025-03-10T09:30:00') == datetime(2025, 3, 10, 9, 30)
    assert parse_data_hora('não é data') is None
    assert parse_data_hora(None) is None


def test_data_hora_iso_descarta_segundos():
    assert data_hora_iso(datetime(2025, 3, 10, 9, 30, 45, 123)) == '2025-03-10T09:30:00'


def test_filtro_de_telefone():
    from ekklesia.filters import format_telefone
    assert format_telefone('11987654321') == '(11) 98765-4321'
    assert format_telefone('+55 (11) 3456-7890') == '(11) 3456-7890'
    assert format_telefone('0800') == '0800'
    assert format_telefone(None) == ''


def test_format_datetime_converte_para_brasilia():
    from ekklesia.filters import format_datetime
    assert format_datetime(datetime(2025, 3, 2, 15, 0)) == '02/03/2025 12:00'
    assert format_datetime('') == ''


def test_fuso_vem_da_configuracao():
    from config import Config
    from ekklesia import filters
    from ekklesia.registros import dados
    assert str(dados.FUSO_IGREJA) == Config.TIMEZONE
    assert str(filters.FUSO_IGREJA) == Config.TIMEZONE
    assert dados.agora_igreja().tzinfo is None
