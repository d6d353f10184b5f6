import pytest

from ekklesia.extensions import db
from ekklesia.membresia.models import Membro
from ekklesia.registros.models import RegistroPendente, PAPEL_VOLUNTARIO
from ekklesia.voluntariado.models import Voluntario
from ekklesia.voluntariado import servicos as voluntariado
from ekklesia.ministerios import servicos
from ekklesia.ministerios.servicos import STATUS_AGUARDANDO_LIDER


@pytest.fixture
def louvor(igreja, admin):
    return servicos.criar_ministerio(igreja.id, 'Louvor', 'Música nos cultos', None, admin)


@pytest.fixture
def recepcao(igreja, admin):
    return servicos.criar_ministerio(igreja.id, 'Recepção', '', None, admin)


def _inscricao(igreja, nome='Lucas Prado', email='lucas@email.com'):
    return voluntariado.criar_inscricao(igreja.id, nome, email, '11977776666',
                                        disponibilidade={'Domingo': ['09:00']})


def test_nome_de_ministerio_unico(igreja, admin, louvor):
    with pytest.raises(ValueError, match='Já existe'):
        servicos.criar_ministerio(igreja.id, 'Louvor', '', None, admin)
    with pytest.raises(ValueError):
        servicos.criar_ministerio(igreja.id, '  ', '', None, admin)


def test_aprovacao_em_dois_ministerios(igreja, admin, louvor, recepcao):
    inscricao = _inscricao(igreja)
    voluntariado.atribuir_ministerios(inscricao, [louvor.id, recepcao.id], admin)
    assert inscricao.status == STATUS_AGUARDANDO_LIDER
    assert servicos.inscricoes_aguardando(louvor) == [inscricao]

    voluntario = servicos.aprovar_voluntario(louvor, inscricao, admin)
    assert inscricao.status == STATUS_AGUARDANDO_LIDER
    assert inscricao.dados['assigned_ministry_ids'] == [recepcao.id]
    assert voluntario.ministerio_ids == [louvor.id]
    assert voluntario.membro.papel == 'Voluntário'
    assert servicos.inscricoes_aguardando(louvor) == []

    mesmo = servicos.aprovar_voluntario(recepcao, inscricao, admin)
    assert mesmo.id == voluntario.id
    assert inscricao.status == 'Alocado'
    assert sorted(voluntario.ministerio_ids) == sorted([louvor.id, recepcao.id])
    assert Voluntario.query.count() == 1

    with pytest.raises(ValueError, match='não aguarda aprovação'):
        servicos.aprovar_voluntario(louvor, inscricao, admin)


def test_aprovacao_reaproveita_membro_existente(igreja, admin, louvor):
    membro = Membro(igreja_id=igreja.id, nome='Lucas Prado', email='lucas@email.com', papel='Membro', status='Ativo')
    db.session.add(membro)
    db.session.commit()
    inscricao = _inscricao(igreja)
    voluntariado.atribuir_ministerios(inscricao, [louvor.id], admin)

    voluntario = servicos.aprovar_voluntario(louvor, inscricao, admin)
    assert voluntario.membro_id == membro.id
    assert Membro.query.filter_by(email='lucas@email.com').count() == 1


def test_recusa_exige_justificativa(igreja, admin, louvor):
    inscricao = _inscricao(igreja)
    voluntariado.atribuir_ministerios(inscricao, [louvor.id], admin)
    with pytest.raises(ValueError, match='justificativa'):
        servicos.recusar_voluntario(louvor, inscricao, ' ', admin)

    servicos.recusar_voluntario(louvor, inscricao, 'Sem horário compatível', admin)
    assert inscricao.status == 'Com Retorno'
    assert inscricao.dados['rejected_by_ministry'] == 'Louvor'
    assert inscricao.dados['assigned_ministry_ids'] == []

    # nova atribuição limpa a recusa anterior
    voluntariado.atribuir_ministerios(inscricao, [louvor.id], admin)
    assert 'rejection_reason' not in inscricao.dados


def test_adicionar_remover_e_transferir(igreja, admin, louvor, recepcao):
    voluntario = Voluntario(igreja_id=igreja.id, nome='Rita Alves', telefone='11955554444',
                            disponibilidade={'Domingo': ['18:00']}, ministerios=[])
    db.session.add(voluntario)
    db.session.commit()

    servicos.adicionar_voluntario(louvor, voluntario, admin)
    assert servicos.voluntarios_do_ministerio(louvor) == [voluntario]
    with pytest.raises(ValueError, match='já faz parte'):
        servicos.adicionar_voluntario(louvor, voluntario, admin)

    with pytest.raises(ValueError, match='diferente'):
        servicos.transferir_voluntario(louvor, louvor, voluntario, admin)

    nova = servicos.transferir_voluntario(louvor, recepcao, voluntario, admin)
    assert servicos.voluntarios_do_ministerio(louvor) == []
    assert voluntario.ministerio_ids == []
    assert nova.status == STATUS_AGUARDANDO_LIDER
    assert nova.dados['transferred_from'] == 'Louvor'
    assert servicos.inscricoes_aguardando(recepcao) == [nova]

    with pytest.raises(ValueError, match='não faz parte'):
        servicos.remover_voluntario(louvor, voluntario, admin)


def test_excluir_ministerio_devolve_inscricoes(igreja, admin, louvor):
    inscricao = _inscricao(igreja)
    voluntariado.atribuir_ministerios(inscricao, [louvor.id], admin)

    servicos.excluir_ministerio(louvor)

    assert servicos.ministerios_da_igreja(igreja.id) == []
    assert inscricao.status == 'Pendente'
    assert inscricao.dados['assigned_ministry_ids'] == []


def test_rotas_de_aprovacao(admin_client, igreja, admin, louvor):
    inscricao = _inscricao(igreja)
    voluntariado.atribuir_ministerios(inscricao, [louvor.id], admin)

    pagina = admin_client.get(f'/ministerios/{louvor.id}').get_data(as_text=True)
    assert 'Lucas Prado' in pagina

    resposta = admin_client.post(f'/ministerios/{louvor.id}/inscricoes/{inscricao.id}/aprovar')
    assert resposta.status_code == 302
    inscricao = db.session.get(RegistroPendente, inscricao.id)
    assert inscricao.status == 'Alocado'
    assert inscricao.papel == PAPEL_VOLUNTARIO


def test_ministerio_de_outra_igreja_e_404(admin_client, outra_igreja):
    alheio = servicos.criar_ministerio(outra_igreja.id, 'Mídia', '', None, None)
    assert admin_client.get(f'/ministerios/{alheio.id}').status_code == 404
