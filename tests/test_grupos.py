import pytest

from ekklesia.extensions import db
from ekklesia.grupos.models import PequenoGrupo
from ekklesia.membresia.models import Membro


@pytest.fixture
def lider(igreja):
    membro = Membro(igreja_id=igreja.id, nome='Débora Nunes', email='debora@email.com')
    db.session.add(membro)
    db.session.commit()
    return membro


@pytest.fixture
def grupo(igreja):
    gc = PequenoGrupo(igreja_id=igreja.id, nome='GC Centro', membro_ids=[])
    db.session.add(gc)
    db.session.commit()
    return gc


def _dados(**extra):
    dados = {'nome': 'GC Jardim', 'lider_id': '0', 'local': 'Casa da Débora', 'imagem_url': '',
             'dia_reuniao': 'Quarta-feira', 'horario_reuniao': '19:30'}
    dados.update(extra)
    return dados


def test_adicionar_e_remover_membro_do_modelo(grupo):
    assert grupo.adicionar_membro(7) is True
    assert grupo.adicionar_membro(7) is False
    assert grupo.tem_membro(7)
    assert grupo.remover_membro(8) is False
    assert grupo.remover_membro(7) is True
    assert grupo.ids_membros == []


def test_criar_grupo_com_lider(admin_client, lider):
    resposta = admin_client.post('/grupos/criar', data=_dados(lider_id=str(lider.id)))
    grupo = PequenoGrupo.query.filter_by(nome='GC Jardim').one()

    assert resposta.status_code == 302
    assert grupo.lider_id == lider.id
    assert grupo.dia_reuniao == 'Quarta-feira'
    assert lider.jornada_eventos_membro.count() == 1


def test_nome_repetido_e_horario_invalido(admin_client, grupo):
    resposta = admin_client.post('/grupos/criar', data=_dados(nome='GC Centro'))
    assert resposta.status_code == 200
    assert 'Já existe um grupo com este nome' in resposta.get_data(as_text=True)

    resposta = admin_client.post('/grupos/criar', data=_dados(horario_reuniao='7 da noite'))
    assert resposta.status_code == 200
    assert PequenoGrupo.query.count() == 1


def test_mesmo_nome_em_outra_igreja(admin_client, grupo, outra_igreja):
    db.session.add(PequenoGrupo(igreja_id=outra_igreja.id, nome='GC Vizinho', membro_ids=[]))
    db.session.commit()
    admin_client.post('/grupos/criar', data=_dados(nome='GC Vizinho'))
    assert PequenoGrupo.query.filter_by(nome='GC Vizinho').count() == 2


def test_participantes_pelas_rotas(admin_client, grupo, lider):
    admin_client.post(f'/grupos/{grupo.id}/membros', data={'membro_id': lider.id})
    admin_client.post(f'/grupos/{grupo.id}/membros', data={'membro_id': lider.id})
    assert grupo.ids_membros == [lider.id]

    pagina = admin_client.get(f'/grupos/{grupo.id}').get_data(as_text=True)
    assert 'Débora Nunes' in pagina

    admin_client.post(f'/grupos/{grupo.id}/membros/{lider.id}/remover')
    assert grupo.ids_membros == []
    assert lider.jornada_eventos_membro.count() == 2


def test_buscar_membros(admin_client, lider):
    resposta = admin_client.get('/grupos/buscar_membros', query_string={'term': 'Nunes'})
    assert resposta.get_json() == {'items': [{'id': lider.id, 'text': 'Débora Nunes'}]}


def test_grupo_de_outra_igreja(admin_client, outra_igreja):
    alheio = PequenoGrupo(igreja_id=outra_igreja.id, nome='GC Fora', membro_ids=[])
    db.session.add(alheio)
    db.session.commit()
    assert admin_client.get(f'/grupos/{alheio.id}').status_code == 404
