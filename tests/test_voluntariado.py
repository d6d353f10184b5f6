from types import SimpleNamespace

import pytest

from ekklesia.extensions import db
from ekklesia.registros.models import RegistroPendente, PAPEL_VOLUNTARIO
from ekklesia.voluntariado.models import Voluntario, EscalaVoluntario
from ekklesia.voluntariado.escalas import (periodo_do_horario, periodos_disponiveis, domingos_do_mes,
                                           gerar_escala, mensagem_escala, contagem_por_periodo)
from ekklesia.voluntariado import servicos
from ekklesia.ministerios import servicos as ministerios
from ekklesia.comunicacao.models import HistoricoMensagem


def _v(nome, disponibilidade):
    return SimpleNamespace(nome=nome, disponibilidade=disponibilidade)


def test_periodo_do_horario():
    assert periodo_do_horario('09:00') == 'Manhã'
    assert periodo_do_horario('14:30') == 'Tarde'
    assert periodo_do_horario('18:00') == 'Noite'
    assert periodo_do_horario('sem hora') is None


def test_periodos_disponiveis_aceita_os_dois_formatos():
    assert periodos_disponiveis({'Domingo': ['19:00', '09:00']}) == {'Domingo': ['Manhã', 'Noite']}
    lista = '[{"day": "Domingo", "periods": ["Noite", "Madrugada"]}, {"periods": ["Manhã"]}]'
    assert periodos_disponiveis(lista) == {'Domingo': ['Noite']}
    assert periodos_disponiveis('lixo') == {}


def test_domingos_do_mes():
    assert [d.day for d in domingos_do_mes('2025-03')] == [2, 9, 16, 23, 30]


def test_gerar_escala_em_rodizio():
    voluntarios = [
        _v('Edu', {'Domingo': ['10:00']}),
        _v('Ana', {'Domingo': ['09:00', '19:00']}),
        _v('Bruno', {'Domingo': ['08:30']}),
        _v('Carla', {'Domingo': ['18:00']}),
        _v('Davi', {'Sábado': ['09:00']}),
    ]
    semanas = gerar_escala(voluntarios, '2025-03')

    assert len(semanas) == 5
    assert semanas[0]['week'] == 'Semana 1 (02/03)'
    assert [s['morningVolunteers'] for s in semanas[:3]] == [['Ana', 'Bruno'], ['Edu', 'Ana'], ['Bruno', 'Edu']]
    assert all(s['eveningVolunteers'] == ['Ana', 'Carla'] for s in semanas)
    assert not any('Davi' in s['morningVolunteers'] + s['eveningVolunteers'] for s in semanas)


def test_mensagem_e_contagem_da_escala():
    semanas = [{'week': 'Semana 1 (02/03)', 'morningVolunteers': ['Ana'], 'eveningVolunteers': []}]
    texto = mensagem_escala('Louvor', semanas)
    assert '*Louvor*' in texto
    assert '*Manhã (10h):* Ana' in texto
    assert '*Noite (18h):* N/A' in texto
    assert contagem_por_periodo([semanas]) == {'Manhã': 1, 'Noite': 0}


def test_criar_inscricao_exige_contato(igreja):
    with pytest.raises(ValueError):
        servicos.criar_inscricao(igreja.id, 'Sem Contato', '', '')
    inscricao = servicos.criar_inscricao(igreja.id, 'Lia', 'lia@email.com', None, ministerios_interesse=['3', 'x'])
    assert inscricao.status == 'Pendente'
    assert inscricao.dados['ministry_interests'] == [3]


def test_atualizar_status_em_lote(igreja, admin):
    inscricoes = [servicos.criar_inscricao(igreja.id, f'Pessoa {n}', f'p{n}@email.com', None) for n in range(3)]
    with pytest.raises(ValueError, match='Status inválido'):
        servicos.atualizar_status(inscricoes, 'Contratado', admin)
    assert servicos.atualizar_status(inscricoes[:2], 'Em Treinamento', admin) == 2
    assert [i.status for i in inscricoes] == ['Em Treinamento', 'Em Treinamento', 'Pendente']


@pytest.fixture
def louvor_com_equipe(igreja, admin):
    louvor = ministerios.criar_ministerio(igreja.id, 'Louvor', '', None, admin)
    for nome, telefone, disp in [('Ana', '11911110000', {'Domingo': ['09:00']}),
                                 ('Bia', None, {'Domingo': ['19:00']}),
                                 ('Caio', '11933330000', {'Segunda': ['19:00']})]:
        v = Voluntario(igreja_id=igreja.id, nome=nome, telefone=telefone, disponibilidade=disp, ministerios=[])
        db.session.add(v)
        db.session.flush()
        ministerios.adicionar_voluntario(louvor, v, admin)
    return louvor


def test_salvar_escala_sobrescreve_o_mesmo_mes(louvor_com_equipe):
    semanas = servicos.gerar_escala_ministerio(louvor_com_equipe, '2025-03')
    primeira = servicos.salvar_escala(louvor_com_equipe, '2025-03', semanas, aprovada=False)
    segunda = servicos.salvar_escala(louvor_com_equipe, '2025-03', semanas[:1])

    assert primeira.id == segunda.id
    assert EscalaVoluntario.query.count() == 1
    assert segunda.aprovada is True
    assert len(segunda.semanas) == 1


def test_gerar_escala_sem_voluntarios(igreja, admin):
    vazio = ministerios.criar_ministerio(igreja.id, 'Mídia', '', None, admin)
    with pytest.raises(ValueError, match='Não há voluntários'):
        servicos.gerar_escala_ministerio(vazio, '2025-03')


def test_enviar_escala_so_para_escalados_com_telefone(louvor_com_equipe, httpx_post):
    semanas = servicos.gerar_escala_ministerio(louvor_com_equipe, '2025-03')
    escala = servicos.salvar_escala(louvor_com_equipe, '2025-03', semanas)

    enviadas, total = servicos.enviar_escala(escala, louvor_com_equipe, 'Pastor João Silva')

    # Bia está escalada mas não tem telefone; Caio não serve aos domingos
    assert (enviadas, total) == (1, 1)
    assert escala.enviada_em is not None
    historico = HistoricoMensagem.query.one()
    assert historico.nome_membro == 'Ana'
    assert historico.campanha_id == f'escala-{escala.id}-2025-03'


def test_resumo_painel(igreja, louvor_com_equipe):
    servicos.criar_inscricao(igreja.id, 'Nova Pessoa', 'nova@email.com', None)
    resumo = servicos.resumo_painel(igreja.id)
    assert resumo['total_voluntarios'] == 3
    assert resumo['novos'] == 1
    assert len(resumo['por_mes']) == 6
    assert list(resumo['por_mes'].values())[-1] == 3


def test_inscricao_publica(client, igreja, louvor_com_equipe):
    resposta = client.post(f'/voluntariado/publico/{igreja.id}/inscricao', data={
        'nome': 'Joana Reis', 'email': 'joana@email.com', 'telefone': '11988887777',
        'ministerios': [str(louvor_com_equipe.id)],
        'disponibilidade': 'Domingo: 09:00, 18:00',
    })
    assert resposta.status_code == 302
    inscricao = RegistroPendente.query.filter_by(papel=PAPEL_VOLUNTARIO).one()
    assert inscricao.dados['ministry_interests'] == [louvor_com_equipe.id]
    assert inscricao.dados['availability'] == {'Domingo': ['09:00', '18:00']}


def test_inscricao_publica_rejeita_disponibilidade_ilegivel(client, igreja):
    resposta = client.post(f'/voluntariado/publico/{igreja.id}/inscricao', data={
        'nome': 'Joana Reis', 'email': 'joana@email.com', 'telefone': '11988887777',
        'disponibilidade': 'quando der',
    })
    assert resposta.status_code == 200
    assert RegistroPendente.query.filter_by(papel=PAPEL_VOLUNTARIO).count() == 0


def test_fluxo_da_escala_pelas_rotas(admin_client, louvor_com_equipe, httpx_post):
    resposta = admin_client.post('/voluntariado/escalas', data={'ministerio_id': louvor_com_equipe.id, 'mes': '2025-03'})
    assert resposta.status_code == 302
    escala = EscalaVoluntario.query.one()
    assert escala.aprovada is False

    admin_client.post(f'/voluntariado/escalas/{escala.id}/enviar')
    assert httpx_post.call_count == 0

    admin_client.post(f'/voluntariado/escalas/{escala.id}/aprovar')
    admin_client.post(f'/voluntariado/escalas/{escala.id}/enviar')
    assert httpx_post.call_count == 1
