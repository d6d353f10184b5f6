from datetime import date

import pytest

from ekklesia.kids import servicos
from ekklesia.kids.models import Crianca, CheckinCrianca
from ekklesia.comunicacao.models import HistoricoMensagem

TELEFONE = '(11) 98888-7777'


@pytest.fixture
def irmaos(igreja):
    responsaveis = [{'name': 'Lucas Prado', 'phone': TELEFONE}]
    return [
        servicos.cadastrar_crianca(igreja.id, 'Alice Prado', date(2018, 5, 10), responsaveis, alergias='Amendoim'),
        servicos.cadastrar_crianca(igreja.id, 'Bento Prado', date(2020, 1, 3), responsaveis),
    ]


def test_cadastro_exige_responsavel_com_telefone(igreja):
    with pytest.raises(ValueError, match='responsável'):
        servicos.cadastrar_crianca(igreja.id, 'Sem Contato', date(2019, 1, 1), [{'name': 'Fulano', 'phone': ''}])
    crianca = servicos.cadastrar_crianca(igreja.id, ' Clara ', None,
                                         [{'name': 'Ana', 'phone': '11 97777-0000'}, {'name': '', 'phone': ''}])
    assert crianca.nome == 'Clara'
    assert crianca.lista_responsaveis == [{'name': 'Ana', 'phone': '11 97777-0000'}]


def test_busca_pelo_telefone_ignora_formatacao(igreja, irmaos):
    assert servicos.criancas_do_responsavel(igreja.id, '11988887777') == irmaos
    assert servicos.criancas_do_responsavel(igreja.id, '11900000000') == []
    with pytest.raises(ValueError, match='DDD'):
        servicos.criancas_do_responsavel(igreja.id, '8888-7777')


def test_checkin_e_checkout(igreja, irmaos):
    alice = irmaos[0]
    servicos.fazer_checkin(alice, 'Tia Rosa')
    with pytest.raises(ValueError, match='já está com check-in'):
        servicos.fazer_checkin(alice, 'Tia Rosa')
    assert [c.crianca for c in servicos.presentes(igreja.id)] == [alice]

    checkin = servicos.fazer_checkout(alice, 'Lucas Prado')
    assert checkin.status == 'CheckedOut'
    assert checkin.checkout_por == 'Lucas Prado'
    assert servicos.presentes(igreja.id) == []
    assert len(servicos.checkins_do_dia(igreja.id)) == 1
    with pytest.raises(ValueError, match='não está com check-in'):
        servicos.fazer_checkout(alice, 'Lucas Prado')


def test_avisar_responsavel(irmaos, admin, httpx_post):
    with pytest.raises(ValueError):
        servicos.avisar_responsavel(irmaos[0], ' ', admin)
    historico = servicos.avisar_responsavel(irmaos[0], 'Alice está chamando por você.', admin)

    assert historico.status == 'sent'
    assert historico.nome_membro == 'Lucas Prado'
    assert httpx_post.call_args.kwargs['json']['data']['mensagem'] == 'Alice está chamando por você.'
    assert HistoricoMensagem.query.filter_by(campanha_id=f'kids-{irmaos[0].id}').count() == 1


def test_cadastro_pela_rota(admin_client):
    resposta = admin_client.post('/kids/criancas', data={
        'nome': 'Davi Rocha', 'data_nascimento': '2019-08-15',
        'responsavel1_nome': 'Sara Rocha', 'responsavel1_telefone': '11966665555',
    })
    assert resposta.status_code == 302
    crianca = Crianca.query.one()
    assert crianca.responsavel_principal == {'name': 'Sara Rocha', 'phone': '11966665555'}


def test_checkin_publico_em_dois_passos(client, igreja, irmaos):
    url = f'/kids/publico/{igreja.id}/checkin'

    pagina = client.post(url, data={'telefone': TELEFONE}).get_data(as_text=True)
    assert 'Alice Prado' in pagina
    assert 'Bento Prado' in pagina

    resposta = client.post(url, data={'telefone': TELEFONE, 'crianca_ids': [irmaos[0].id]})
    assert resposta.status_code == 200
    assert 'Alice Prado' in resposta.get_data(as_text=True)
    assert CheckinCrianca.query.filter_by(status='CheckedIn').count() == 1

    # o checkout público só lista quem está presente
    pagina = client.post(f'/kids/publico/{igreja.id}/checkout', data={'telefone': TELEFONE}).get_data(as_text=True)
    assert 'Alice Prado' in pagina
    assert 'Bento Prado' not in pagina


def test_checkin_publico_ignora_crianca_de_outro_responsavel(client, igreja, irmaos):
    outra = servicos.cadastrar_crianca(igreja.id, 'Outra Criança', None, [{'name': 'X', 'phone': '11911112222'}])
    client.post(f'/kids/publico/{igreja.id}/checkin', data={'telefone': TELEFONE, 'crianca_ids': [outra.id]})
    assert CheckinCrianca.query.count() == 0
