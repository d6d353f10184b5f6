import io

import pytest
from PIL import Image

from ekklesia.extensions import db
from ekklesia.membresia import servicos
from ekklesia.membresia.models import Membro, Visitante, PastorLider
from ekklesia.registros.models import RegistroPendente


def _membro(igreja, nome, **extra):
    membro = Membro(igreja_id=igreja.id, nome=nome, **extra)
    db.session.add(membro)
    db.session.commit()
    return membro


def _dados_membro(**extra):
    dados = {'nome': 'José Antônio', 'email': 'jose@email.com', 'telefone': '11922223333',
             'genero': 'Masculino', 'estado_civil': '', 'papel': 'Membro', 'status': 'Ativo'}
    dados.update(extra)
    return dados


def test_busca_ignora_acentos_e_caixa(igreja):
    _membro(igreja, 'José Antônio')
    _membro(igreja, 'Joana Dark', status='Inativo')
    query = Membro.query.filter_by(igreja_id=igreja.id)

    assert [m.nome for m in servicos.buscar_membros(query, busca='jose antonio')] == ['José Antônio']
    assert [m.nome for m in servicos.buscar_membros(query, busca='JO', status='Inativo')] == ['Joana Dark']


def test_cadastro_de_membro_pela_rota(admin_client, igreja):
    resposta = admin_client.post('/membresia/novo', data=_dados_membro())
    membro = Membro.query.filter_by(nome='José Antônio').one()
    assert resposta.status_code == 302
    assert resposta.headers['Location'].endswith(f'/membresia/{membro.id}/perfil')
    assert membro.estado_civil is None

    repetido = admin_client.post('/membresia/novo', data=_dados_membro())
    assert repetido.status_code == 200
    assert 'Já existe um membro cadastrado' in repetido.get_data(as_text=True)


def test_foto_de_perfil_e_redimensionada(admin_client, app):
    imagem = io.BytesIO()
    Image.new('RGBA', (800, 600), (200, 30, 30, 255)).save(imagem, format='PNG')
    imagem.seek(0)

    admin_client.post('/membresia/novo', data=dict(_dados_membro(), avatar=(imagem, 'foto.png')),
                      content_type='multipart/form-data')
    membro = Membro.query.filter_by(nome='José Antônio').one()
    assert membro.avatar.endswith('.jpg')

    caminho = f"{app.config['UPLOAD_FOLDER']}/{membro.avatar}"
    with Image.open(caminho) as salva:
        assert max(salva.size) <= 200
    servicos.remover_avatar(membro.avatar)


def test_arquivo_que_nao_e_imagem(app):
    from werkzeug.datastructures import FileStorage
    falso = FileStorage(stream=io.BytesIO(b'nao sou imagem'), filename='foto.jpg')
    assert servicos.salvar_avatar(falso) is None
    assert servicos.salvar_avatar(FileStorage(stream=io.BytesIO(b''), filename='planilha.xls')) is None


def test_aprovar_inscricao_de_pastor(igreja, admin):
    registro = servicos.criar_inscricao(igreja.id, 'Pr. Elias', 'elias@email.com', '11900001111', 'Pastor',
                                        {'gender': 'Masculino', 'birthdate': '1980-02-29', 'baptized': True})

    membro = servicos.aprovar_inscricao(registro, admin)

    assert membro.papel == 'Pastor'
    assert membro.data_nascimento.isoformat() == '1980-02-29'
    assert membro.batizado is True
    assert PastorLider.query.filter_by(nome='Pr. Elias').count() == 1
    assert registro.status == 'Aprovado'
    with pytest.raises(ValueError, match='já foi analisada'):
        servicos.aprovar_inscricao(registro, admin)


def test_inscricao_com_papel_invalido(igreja):
    with pytest.raises(ValueError, match='Papel inválido'):
        servicos.criar_inscricao(igreja.id, 'X', 'x@email.com', None, 'Voluntário')


def test_cadastro_publico_e_revisao(client, admin_client, igreja):
    client.post(f'/membresia/publico/{igreja.id}/cadastro', data={
        'nome': 'Helena Costa', 'email': 'Helena@Email.com', 'telefone': '11988880000',
        'data_nascimento': '1995-07-20', 'batizado': 'y',
    })
    registro = RegistroPendente.query.filter_by(nome='Helena Costa').one()
    assert registro.email == 'helena@email.com'
    assert registro.dados['baptized'] is True

    pagina = admin_client.get('/membresia/inscricoes').get_data(as_text=True)
    assert 'Helena Costa' in pagina

    admin_client.post(f'/membresia/inscricoes/{registro.id}/recusar', data={'motivo': 'Duplicado'})
    assert registro.status == 'Recusado'
    assert registro.dados['activities'][-1]['details'] == 'Duplicado'
    assert servicos.inscricoes_pendentes(igreja.id) == []


def test_aprovacao_nao_aceita_registros_de_outros_modulos(admin_client, igreja):
    ministerio = RegistroPendente(igreja_id=igreja.id, nome='Louvor', papel='Ministério', status='Ativo', form_data={})
    db.session.add(ministerio)
    db.session.commit()
    assert admin_client.post(f'/membresia/inscricoes/{ministerio.id}/aprovar').status_code == 404


def test_visitante_publico(client, igreja):
    resposta = client.post(f'/membresia/publico/{igreja.id}/visitante', data={'nome': 'Caio Lopes', 'email': ''})
    assert 'Seja bem-vindo(a), Caio' in resposta.get_data(as_text=True)
    assert Visitante.query.one().email is None


def test_perfil_e_busca_json(admin_client, igreja):
    membro = _membro(igreja, 'Priscila Alves', telefone='11911110000')
    assert admin_client.get(f'/membresia/{membro.id}/perfil').status_code == 200

    itens = admin_client.get('/membresia/buscar', query_string={'term': 'priscila'}).get_json()['items']
    assert itens[0]['id'] == membro.id
    assert itens[0]['perfil_url'].endswith(f'/membresia/{membro.id}/perfil')
