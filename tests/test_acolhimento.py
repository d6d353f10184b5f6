import pytest

from ekklesia.registros.models import RegistroPendente, PAPEL_AGENDAMENTO, PAPEL_DISCIPULADO, PAPEL_VOLUNTARIO
from ekklesia.acolhimento.models import NovoComeco
from ekklesia.acolhimento import servicos


@pytest.fixture
def novo(igreja):
    return servicos.criar_novo_comeco(
        igreja.id, 'Marcos Lima', '11955554444', 'marcos@email.com', 'Domingo Noite',
        interesses=['baptism', 'growth_group', 'inexistente'],
        detalhes={'gender': 'Masculino', 'counseling_topics': 'Ansiedade'},
    )


def test_criar_novo_comeco(novo):
    assert novo.status == 'Pendente'
    assert novo.lista_interesses == ['baptism', 'growth_group']
    assert novo.criado_por == 'Formulário público'
    assert novo.atividades[0]['action'] == 'created'


def test_assumir_e_registrar_contato(novo, admin):
    servicos.assumir(novo, admin)
    assert novo.status == 'Em acolhimento'
    assert novo.acompanhante_nome == 'Pastor João Silva'

    with pytest.raises(ValueError):
        servicos.registrar_contato(novo, '   ', admin)
    servicos.registrar_contato(novo, 'Liguei e conversamos bastante.', admin)
    assert novo.acompanhamentos[0]['contacted_by'] == 'Pastor João Silva'


def test_status_invalido(novo, admin):
    with pytest.raises(ValueError, match='Status inválido'):
        servicos.alterar_status(novo, 'Arquivado', admin)
    servicos.alterar_status(novo, 'Sem resposta', admin)
    assert novo.status == 'Sem resposta'


def test_marcar_batizado_remove_interesse(novo, admin):
    servicos.marcar_batizado(novo, admin)
    assert not novo.tem_interesse('baptism')
    with pytest.raises(ValueError):
        servicos.marcar_batizado(novo, admin)


def test_enviar_para_aconselhamento_uma_vez(novo, admin):
    agendamento = servicos.enviar_para_aconselhamento(novo, admin)

    assert agendamento.papel == PAPEL_AGENDAMENTO
    assert agendamento.status == 'Na Fila'
    assert agendamento.dados['topic'] == 'Ansiedade'
    assert agendamento.dados['member_gender'] == 'Masculino'
    assert novo.status == 'Direcionado'
    with pytest.raises(ValueError, match='já foi enviado'):
        servicos.enviar_para_aconselhamento(novo, admin)


def test_enviar_para_discipulado_cria_membro(novo, admin):
    relacao = servicos.enviar_para_discipulado(novo, admin)

    assert relacao.papel == PAPEL_DISCIPULADO
    assert relacao.status == 'Pendente'
    assert relacao.dados['disciple_id'] is not None
    with pytest.raises(ValueError):
        servicos.enviar_para_discipulado(novo, admin)


def test_enviar_para_voluntariado(novo, admin):
    inscricao = servicos.enviar_para_voluntariado(novo, admin)
    assert inscricao.papel == PAPEL_VOLUNTARIO
    assert inscricao.dados['source'] == 'Acolhimento'


def test_atividade_automatica_de_grupo(novo, igreja):
    assert servicos.interessados_em_grupo(igreja.id) == [novo]
    atividades = servicos.atividades_para_exibir(novo)
    assert any(a['id'] == 'auto-sg-activity' for a in atividades)


def _formulario(**extra):
    dados = {'nome': 'Rute Souza', 'telefone': '11944443333', 'email': '', 'culto': '',
             'pequeno_grupo_id': '0', 'genero': '', 'topico_aconselhamento': '', 'pedido_oracao': ''}
    dados.update(extra)
    return dados


def test_formulario_publico(client, igreja):
    resposta = client.post(f'/acolhimento/publico/{igreja.id}/novo-comeco',
                           data=_formulario(interesses=['counseling', 'prayer_request'], pedido_oracao='Pela família'))
    assert resposta.status_code == 200
    registro = NovoComeco.query.one()
    assert registro.igreja_id == igreja.id
    assert registro.pequeno_grupo_id is None
    assert registro.detalhes['prayer_request'] == 'Pela família'


def test_formulario_publico_igreja_inexistente(client):
    assert client.get('/acolhimento/publico/999/novo-comeco').status_code == 404


def test_acoes_pelas_rotas(admin_client, novo):
    admin_client.post(f'/acolhimento/{novo.id}/assumir')
    admin_client.post(f'/acolhimento/{novo.id}/contato', data={'anotacoes': 'Primeiro contato.'})
    admin_client.post(f'/acolhimento/{novo.id}/aconselhamento')

    assert novo.status == 'Direcionado'
    assert len(novo.acompanhamentos) == 1
    assert RegistroPendente.query.filter_by(papel=PAPEL_AGENDAMENTO, status='Na Fila').count() == 1
    assert admin_client.get(f'/acolhimento/{novo.id}').status_code == 200


def test_registro_de_outra_igreja(admin_client, outra_igreja):
    alheio = servicos.criar_novo_comeco(outra_igreja.id, 'Fora Daqui', '11900000000')
    assert admin_client.get(f'/acolhimento/{alheio.id}').status_code == 404
