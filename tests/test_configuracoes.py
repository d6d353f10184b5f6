from ekklesia.extensions import db
from ekklesia.auth.models import User
from ekklesia.igrejas.models import Igreja
from ekklesia.jornada.models import JornadaEvento, registrar_evento_jornada
from ekklesia.aconselhamento.models import Conselheiro
from conftest import entrar


def _dados_usuario(**extra):
    dados = {'nome': 'Tiago Mendes', 'email': 'Tiago@Esperanca.org', 'papel': 'Coordenador', 'conselheiro_id': '0',
             'password': 'senha-forte-123', 'password2': 'senha-forte-123'}
    dados.update(extra)
    return dados


def test_atualizar_dados_da_igreja(admin_client, igreja):
    resposta = admin_client.post('/configuracoes/', data={'nome': 'Igreja Esperança Viva', 'telefone': '1133334444'})
    assert resposta.status_code == 302
    assert db.session.get(Igreja, igreja.id).nome == 'Igreja Esperança Viva'


def test_novo_usuario_exige_senha(admin_client):
    resposta = admin_client.post('/configuracoes/usuarios/novo', data=_dados_usuario(password='', password2=''))
    assert resposta.status_code == 200
    assert 'Informe uma senha' in resposta.get_data(as_text=True)
    assert User.query.filter_by(email='tiago@esperanca.org').first() is None


def test_criar_e_editar_usuario(admin_client, igreja):
    admin_client.post('/configuracoes/usuarios/novo', data=_dados_usuario())
    usuario = User.query.filter_by(email='tiago@esperanca.org').one()
    assert usuario.igreja_id == igreja.id
    assert usuario.check_password('senha-forte-123')

    conselheiro = Conselheiro(igreja_id=igreja.id, nome='Carlos Andrade')
    db.session.add(conselheiro)
    db.session.commit()
    admin_client.post(f'/configuracoes/usuarios/{usuario.id}/editar', data=_dados_usuario(
        email='tiago@esperanca.org', papel='Conselheiro', conselheiro_id=str(conselheiro.id), password='', password2=''))
    assert usuario.papel == 'Conselheiro'
    assert usuario.conselheiro_id == conselheiro.id
    assert usuario.check_password('senha-forte-123')


def test_conselheiro_vinculado_a_um_usuario_so(admin_client, igreja, criar_usuario):
    conselheiro = Conselheiro(igreja_id=igreja.id, nome='Carlos Andrade')
    db.session.add(conselheiro)
    db.session.commit()
    criar_usuario('Conselheiro', conselheiro=conselheiro)

    resposta = admin_client.post('/configuracoes/usuarios/novo', data=_dados_usuario(conselheiro_id=str(conselheiro.id)))
    assert 'já está vinculado' in resposta.get_data(as_text=True)


def test_admin_nao_remove_o_proprio_acesso(admin_client, admin):
    admin_client.post(f'/configuracoes/usuarios/{admin.id}/editar', data=_dados_usuario(
        nome=admin.nome, email=admin.email, papel='Membro', password='', password2=''))
    assert admin.papel == 'Administrador'

    admin_client.post(f'/configuracoes/usuarios/{admin.id}/excluir')
    assert db.session.get(User, admin.id) is not None


def test_excluir_usuario(admin_client, criar_usuario, outra_igreja):
    membro = criar_usuario('Membro')
    admin_client.post(f'/configuracoes/usuarios/{membro.id}/excluir')
    assert db.session.get(User, membro.id) is None

    vizinho = User.query.filter_by(email='ana@vizinha.org').one()
    assert admin_client.post(f'/configuracoes/usuarios/{vizinho.id}/excluir').status_code == 404


def test_papeis_e_acesso_restrito(client, admin_client, criar_usuario):
    pagina = admin_client.get('/configuracoes/papeis').get_data(as_text=True)
    assert 'Todas as áreas' in pagina
    assert 'acolhimento' in pagina

    entrar(client, criar_usuario('Coordenador'))
    assert client.get('/configuracoes/usuarios').status_code == 302


def test_historico_filtra_por_categoria(admin_client, admin, igreja, outra_igreja):
    registrar_evento_jornada('ACOLHIMENTO', 'Contato com Marcos', admin)
    registrar_evento_jornada('TRANSACAO', 'Lançamento criado', admin)
    registrar_evento_jornada('ACOLHIMENTO', 'Evento da vizinha', None, igreja_id=outra_igreja.id)

    pagina = admin_client.get('/jornada/', query_string={'categoria': 'Acolhimento'}).get_data(as_text=True)
    assert 'Contato com Marcos' in pagina
    assert 'Lançamento criado' not in pagina
    assert 'Evento da vizinha' not in pagina


def test_registrar_evento_sem_igreja_e_ignorado(app):
    assert registrar_evento_jornada('ACOLHIMENTO', 'Sem igreja', None) is None
    assert JornadaEvento.query.count() == 0


def test_excluir_evento_do_historico(admin_client, admin):
    evento = registrar_evento_jornada('ACOLHIMENTO', 'Para excluir', admin)
    admin_client.post(f'/jornada/{evento.id}/delete')
    assert JornadaEvento.query.count() == 0
