import pytest

from ekklesia.extensions import db
from ekklesia.membresia.models import Membro, Visitante
from ekklesia.voluntariado.models import Voluntario
from ekklesia.comunicacao import servicos
from ekklesia.comunicacao.models import HistoricoMensagem, MensagemRecebida, GrupoComunicacao, MembroGrupoComunicacao
from conftest import resposta_http


@pytest.fixture
def contatos(igreja, outra_igreja):
    db.session.add_all([
        Membro(igreja_id=igreja.id, nome='Ana Paula', telefone='(11) 91111-2222'),
        Membro(igreja_id=igreja.id, nome='Sem Telefone'),
        Voluntario(igreja_id=igreja.id, nome='Ana P.', telefone='11911112222', ministerios=[]),
        Visitante(igreja_id=igreja.id, nome='Beto Ramos', telefone='11933334444'),
        Membro(igreja_id=outra_igreja.id, nome='De Fora', telefone='11955556666'),
    ])
    db.session.commit()


def test_contatos_sem_repetir_telefone(igreja, contatos):
    todos = servicos.contatos_do_publico(igreja.id, 'all')
    assert [c['nome'] for c in todos] == ['Ana Paula', 'Beto Ramos']
    assert [c['nome'] for c in servicos.contatos_do_publico(igreja.id, 'visitantes')] == ['Beto Ramos']


def test_publico_invalido_ou_de_outra_igreja(igreja, outra_igreja):
    with pytest.raises(ValueError, match='Público inválido'):
        servicos.contatos_do_publico(igreja.id, 'todo-mundo')
    with pytest.raises(ValueError, match='Público inválido'):
        servicos.contatos_do_publico(igreja.id, 'grupo:abc')

    alheio = GrupoComunicacao(igreja_id=outra_igreja.id, nome='Jovens')
    db.session.add(alheio)
    db.session.commit()
    with pytest.raises(ValueError, match='não encontrado'):
        servicos.contatos_do_publico(igreja.id, f'grupo:{alheio.id}')


def test_contatos_de_grupo_ignoram_inativos(igreja):
    grupo = GrupoComunicacao(igreja_id=igreja.id, nome='Intercessão')
    db.session.add(grupo)
    db.session.flush()
    db.session.add_all([
        MembroGrupoComunicacao(grupo_id=grupo.id, nome='Clara', telefone='11900001111'),
        MembroGrupoComunicacao(grupo_id=grupo.id, nome='Dora', telefone='11900002222', ativo=False),
    ])
    db.session.commit()
    assert servicos.contatos_do_publico(igreja.id, f'grupo:{grupo.id}') == [{'nome': 'Clara', 'telefone': '11900001111'}]


def test_personalizar():
    assert servicos.personalizar('Olá {nome}, bom dia!', 'Ana Paula') == 'Olá Ana, bom dia!'
    assert servicos.personalizar('Olá {nome}!', None) == 'Olá !'


def test_enviar_campanha_registra_falhas(igreja, contatos, httpx_post):
    httpx_post.side_effect = [resposta_http(), resposta_http(sucesso=False, status=500, texto='erro')]
    destinatarios = servicos.contatos_do_publico(igreja.id, 'all')

    enviadas, falhas, campanha_id = servicos.enviar_campanha(igreja.id, destinatarios, 'Olá {nome}!', 'Secretaria')

    assert (enviadas, falhas) == (1, 1)
    registros = HistoricoMensagem.query.filter_by(campanha_id=campanha_id).order_by(HistoricoMensagem.id).all()
    assert [r.status for r in registros] == ['sent', 'failed']
    assert registros[0].corpo == 'Olá Ana!'
    assert 'Webhook Error' in registros[1].erro


def test_enviar_campanha_sem_destinatarios(igreja):
    with pytest.raises(ValueError, match='Nenhum destinatário'):
        servicos.enviar_campanha(igreja.id, [], 'Olá', 'Secretaria')
    with pytest.raises(ValueError, match='Escreva a mensagem'):
        servicos.enviar_campanha(igreja.id, [{'nome': 'A', 'telefone': '1'}], '  ', 'Secretaria')


def test_sem_webhook_configurado_falha_sem_excecao(app, igreja, contatos, httpx_post):
    app.config['WHATSAPP_WEBHOOK_URL'] = None
    enviadas, falhas, _ = servicos.enviar_campanha(igreja.id, servicos.contatos_do_publico(igreja.id, 'all'),
                                                   'Aviso', 'Secretaria')
    assert (enviadas, falhas) == (0, 2)
    assert httpx_post.call_count == 0


def test_envio_em_massa_pela_rota(admin_client, igreja, contatos, httpx_post):
    resposta = admin_client.post('/comunicacao/enviar-grupo', data={'publico': 'visitantes', 'mensagem': 'Oi {nome}'})
    assert resposta.status_code == 302
    assert httpx_post.call_count == 1
    assert httpx_post.call_args.kwargs['json'] == {'data': {'telefone': '11933334444', 'mensagem': 'Oi Beto'}}


def test_webhook_de_entrada(client, igreja):
    payload = {'data': {'telefone': '11977778888', 'mensagem': 'Bom dia!', 'nome': 'Lia', 'id': 'wamid.1'}}
    resposta = client.post(f'/comunicacao/webhook/{igreja.id}', json=payload)
    assert resposta.get_json() == {'success': True, 'duplicada': False}

    repetida = client.post(f'/comunicacao/webhook/{igreja.id}', json=payload)
    assert repetida.get_json()['duplicada'] is True
    assert MensagemRecebida.query.count() == 1

    sem_telefone = client.post(f'/comunicacao/webhook/{igreja.id}', json={'data': {'mensagem': 'oi'}})
    assert sem_telefone.status_code == 400


def test_webhook_exige_token_quando_configurado(app, client, igreja):
    app.config['WHATSAPP_INBOUND_TOKEN'] = 'segredo'
    payload = {'data': {'telefone': '11977778888', 'mensagem': 'Oi'}}
    assert client.post(f'/comunicacao/webhook/{igreja.id}', json=payload).status_code == 403
    resposta = client.post(f'/comunicacao/webhook/{igreja.id}', json=payload, headers={'X-Webhook-Token': 'segredo'})
    assert resposta.status_code == 200


def test_conversas_agrupam_por_telefone(admin_client, igreja, httpx_post):
    servicos.registrar_recebida(igreja.id, '+55 (11) 97777-8888', 'Preciso de oração', nome='Lia')
    servicos.registrar_recebida(igreja.id, '5511977778888', 'Obrigada!')

    conversas = servicos.conversas(igreja.id)
    assert len(conversas) == 1
    assert conversas[0]['nao_lidas'] == 2

    pagina = admin_client.get('/comunicacao/conversas/5511977778888')
    assert pagina.status_code == 200
    assert 'Preciso de oração' in pagina.get_data(as_text=True)
    assert MensagemRecebida.query.filter_by(lida=False).count() == 0

    admin_client.post('/comunicacao/conversas/5511977778888/responder', data={'mensagem': 'Estamos orando!'})
    mensagens = servicos.mensagens_da_conversa(igreja.id, '5511977778888')
    assert [m['direcao'] for m in mensagens] == ['recebida', 'recebida', 'enviada']


def test_conversa_inexistente(admin_client):
    assert admin_client.get('/comunicacao/conversas/11900000000').status_code == 404
