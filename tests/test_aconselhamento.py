import pytest

from config import Config
from ekklesia.extensions import db
from ekklesia.aconselhamento.models import Conselheiro
from ekklesia.aconselhamento import servicos
from ekklesia.aconselhamento.estatisticas import estatisticas_completas, faixa_etaria
from ekklesia.comunicacao.models import HistoricoMensagem
from ekklesia.registros.models import RegistroPendente, PAPEL_AGENDAMENTO
from conftest import proximo_dia, entrar, resposta_http

TOPICO = Config.TOPICOS_ACONSELHAMENTO[0]['label']


@pytest.fixture
def conselheiro(igreja):
    c = Conselheiro(igreja_id=igreja.id, nome='Carlos Andrade', email='carlos@esperanca.org',
                    telefone='(11) 98888-7777', genero='Masculino', topicos=['Casamento'],
                    disponibilidade={'Segunda': ['09:00', '10:00']})
    db.session.add(c)
    db.session.commit()
    return c


def _solicitante(nome='Maria Souza', email='maria@email.com', telefone='11999990000'):
    return {'nome': nome, 'email': email, 'telefone': telefone, 'genero': 'Feminino', 'idade': 34}


def test_criar_agendamento_reserva_horario(igreja, conselheiro):
    segunda = proximo_dia(0)
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                    data=segunda, horario='9:00')

    assert ag.papel == PAPEL_AGENDAMENTO
    assert ag.status == 'Pendente'
    dados = ag.dados
    assert dados['counselor_id'] == conselheiro.id
    assert dados['date'] == f'{segunda.isoformat()}T09:00:00'
    assert dados['meetings'] == []
    assert dados['activities'][0]['action'] == 'created'

    with pytest.raises(ValueError, match='não está disponível'):
        servicos.criar_agendamento(igreja, _solicitante('Pedro Lima', 'pedro@email.com', '11911112222'),
                                   TOPICO, conselheiro=conselheiro, data=segunda, horario='09:00')


def test_criar_agendamento_recusa_duplicado(igreja, conselheiro):
    segunda = proximo_dia(0)
    servicos.criar_agendamento(igreja, _solicitante(), TOPICO, fila=True)
    with pytest.raises(ValueError, match='já possui um agendamento'):
        servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                   data=segunda, horario='10:00')


def test_criar_agendamento_exige_campos(igreja, conselheiro):
    with pytest.raises(ValueError):
        servicos.criar_agendamento(igreja, _solicitante(email=''), TOPICO, fila=True)
    with pytest.raises(ValueError, match='Preencha todos os campos'):
        servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro)


def test_fila_de_espera_e_atribuicao(igreja, conselheiro, admin, httpx_post):
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, fila=True)
    assert ag.status == 'Na Fila'
    assert ag.dados['counselor_id'] is None

    segunda = proximo_dia(0)
    falhas = servicos.atribuir_da_fila(ag, conselheiro, segunda, '10:00', admin)

    assert falhas == []
    assert ag.status == 'Marcado'
    assert ag.dados['counselor_name'] == 'Carlos Andrade'
    assert ag.dados['activities'][-1]['action'] == 'assigned_counselor'
    assert httpx_post.call_count == 1

    with pytest.raises(ValueError, match='não está na fila'):
        servicos.atribuir_da_fila(ag, conselheiro, segunda, '09:00', admin)


def test_cancelamento_exige_motivo_e_notifica(igreja, conselheiro, admin, httpx_post):
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                    data=proximo_dia(0), horario='09:00')
    with pytest.raises(ValueError, match='motivo'):
        servicos.alterar_status(ag, 'Cancelado', admin, motivo='  ')

    falhas = servicos.alterar_status(ag, 'Cancelado', admin, motivo='Viagem')

    assert falhas == []
    assert ag.status == 'Cancelado'
    assert ag.dados['cancellation_reason'] == 'Viagem'
    destinatarios = [c.kwargs['json']['to'] for c in httpx_post.call_args_list]
    assert destinatarios == [['maria@email.com'], ['carlos@esperanca.org']]


def test_status_invalido(igreja, conselheiro, admin):
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, fila=True)
    with pytest.raises(ValueError, match='Status inválido'):
        servicos.alterar_status(ag, 'Marcado', admin)


def test_cancelamento_libera_horario(igreja, conselheiro, admin, httpx_post):
    segunda = proximo_dia(0)
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                    data=segunda, horario='09:00')
    servicos.alterar_status(ag, 'Cancelado', admin, motivo='Desistiu')

    novo = servicos.criar_agendamento(igreja, _solicitante('Pedro Lima', 'pedro@email.com', '11911112222'),
                                      TOPICO, conselheiro=conselheiro, data=segunda, horario='09:00')
    assert novo.status == 'Pendente'


def test_confirmar_e_reagendar(igreja, conselheiro, admin, httpx_post):
    segunda = proximo_dia(0)
    outro = servicos.criar_agendamento(igreja, _solicitante('Pedro Lima', 'pedro@email.com', '11911112222'),
                                       TOPICO, conselheiro=conselheiro, data=segunda, horario='10:00')
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                    data=segunda, horario='09:00')

    servicos.confirmar(ag, admin)
    assert ag.status == 'Marcado'
    with pytest.raises(ValueError, match='pendentes'):
        servicos.confirmar(ag, admin)

    with pytest.raises(ValueError, match='não está disponível'):
        servicos.reagendar(ag, segunda, outro.dados['date'][11:16], admin)

    # o próprio horário continua válido ao reagendar
    servicos.reagendar(ag, segunda, '09:00', admin)
    assert ag.dados['activities'][-1]['action'] == 'rescheduled'


def test_transferir(igreja, conselheiro, admin):
    nova = Conselheiro(igreja_id=igreja.id, nome='Marta Dias', email='marta@esperanca.org', topicos=['Casamento'])
    db.session.add(nova)
    db.session.commit()
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                    data=proximo_dia(0), horario='09:00')

    with pytest.raises(ValueError, match='justificativa'):
        servicos.transferir(ag, nova, '', admin)
    with pytest.raises(ValueError, match='já está com este conselheiro'):
        servicos.transferir(ag, conselheiro, 'Agenda cheia', admin)

    servicos.transferir(ag, nova, 'Agenda cheia', admin)
    assert ag.dados['counselor_id'] == nova.id
    assert ag.status == 'Marcado'


def test_encontros_so_editados_por_quem_registrou(igreja, conselheiro, admin, criar_usuario):
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, fila=True)
    servicos.salvar_encontro(ag, admin, proximo_dia(0), 'Primeira conversa', 'Anotações', confidencial=True)
    encontro = ag.dados['meetings'][0]
    assert encontro['recordedById'] == admin.id
    assert encontro['isConfidential'] is True

    outro = criar_usuario('Conselheiro', conselheiro=conselheiro)
    with pytest.raises(ValueError, match='Apenas quem registrou'):
        servicos.salvar_encontro(ag, outro, proximo_dia(0), 'Edição', 'Nova', encontro_id=encontro['id'])
    assert not servicos.pode_ver_confidencial(outro, encontro)
    assert servicos.pode_ver_confidencial(admin, encontro)

    servicos.salvar_encontro(ag, admin, proximo_dia(0), 'Conversa revisada', 'Anotações', encontro_id=encontro['id'])
    assert ag.dados['meetings'][0]['topic'] == 'Conversa revisada'
    assert len(ag.dados['meetings']) == 1


def test_notificar_solicitante_com_falha_do_resend(igreja, httpx_post):
    httpx_post.return_value = resposta_http(False, 500, 'erro')
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, fila=True)
    assert servicos.notificar_solicitante(igreja, ag) is False


def test_notificar_conselheiro_grava_historico(igreja, conselheiro, httpx_post):
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro,
                                    data=proximo_dia(0), horario='09:00')
    historico = servicos.notificar_conselheiro(igreja.id, ag)

    assert historico.status == 'sent'
    assert historico.telefone_membro == conselheiro.telefone
    assert 'Olá, Carlos!' in historico.corpo
    assert httpx_post.call_args.kwargs['json']['data']['telefone'] == conselheiro.telefone


def test_estatisticas_completas():
    agendamentos = [
        {'status': 'Concluído', 'date': '2025-03-10T09:00:00', 'counselor_name': 'Carlos',
         'member_gender': 'Feminino', 'member_age': 30, 'topic': 'casamento'},
        {'status': 'Marcado', 'date': '2025-03-12T09:00:00', 'counselor_name': 'Carlos',
         'member_gender': 'Masculino', 'member_age': '17', 'topic': 'vicios'},
        {'status': 'Na Fila', 'date': '2025-04-01T09:00:00', 'counselor_name': None,
         'member_gender': None, 'member_age': None, 'topic': 'casamento'},
    ]
    est = estatisticas_completas(agendamentos, '2025-03')
    assert est['resumo']['total'] == 2
    assert est['resumo']['concluidos'] == 1
    assert est['resumo']['marcados'] == 1
    assert est['por_conselheiro'] == {'Carlos': 2}
    assert list(est['por_faixa_etaria']) == ['Até 17', '26-35']

    todos = estatisticas_completas(agendamentos)
    assert todos['resumo']['na_fila'] == 1
    assert todos['por_conselheiro']['Sem conselheiro'] == 1
    assert faixa_etaria('abc') == 'Não informado'


def test_agendamento_publico_pelo_formulario(client, igreja, conselheiro, httpx_post):
    segunda = proximo_dia(0)
    resposta = client.post(f'/aconselhamento/publico/{igreja.id}/agendar', data={
        'nome': 'Maria Souza', 'email': 'maria@email.com', 'telefone': '11999990000',
        'topico': TOPICO, 'conselheiro_id': conselheiro.id, 'estado_civil': '', 'genero': '',
        'dia': segunda.isoformat(), 'horario': '09:00', 'submit': 'Confirmar Agendamento',
    })

    assert resposta.status_code == 302
    ag = RegistroPendente.query.filter_by(papel=PAPEL_AGENDAMENTO).one()
    assert ag.status == 'Pendente'
    # e-mail ao solicitante e WhatsApp ao conselheiro
    assert httpx_post.call_count == 2
    assert HistoricoMensagem.query.filter_by(status='sent').count() == 1

    horarios = client.get(f'/aconselhamento/publico/{igreja.id}/conselheiros/{conselheiro.id}/horarios'
                          f'?data={segunda.isoformat()}').get_json()
    assert horarios['horarios'] == [{'horario': '09:00', 'ocupado': True}, {'horario': '10:00', 'ocupado': False}]


def test_horarios_publico_data_invalida(client, igreja, conselheiro):
    resposta = client.get(f'/aconselhamento/publico/{igreja.id}/conselheiros/{conselheiro.id}/horarios?data=ontem')
    assert resposta.status_code == 400


def test_conselheiros_publico_filtra_por_topico(client, igreja, conselheiro):
    lista = client.get(f'/aconselhamento/publico/{igreja.id}/conselheiros', query_string={'topico': TOPICO}).get_json()
    assert [c['nome'] for c in lista] == ['Carlos Andrade']
    assert lista[0]['dias_disponiveis'] == [1]
    vazia = client.get(f'/aconselhamento/publico/{igreja.id}/conselheiros', query_string={'topico': 'Finanças'}).get_json()
    assert vazia == []


def test_conselheiro_ve_apenas_a_propria_agenda(client, igreja, conselheiro, criar_usuario):
    outro = Conselheiro(igreja_id=igreja.id, nome='Marta Dias', disponibilidade={'Segunda': ['09:00']})
    db.session.add(outro)
    db.session.commit()
    segunda = proximo_dia(0)
    servicos.criar_agendamento(igreja, _solicitante(), TOPICO, conselheiro=conselheiro, data=segunda, horario='09:00')
    servicos.criar_agendamento(igreja, _solicitante('Pedro Lima', 'pedro@email.com', '11911112222'),
                               TOPICO, conselheiro=outro, data=segunda, horario='09:00')

    entrar(client, criar_usuario('Conselheiro', conselheiro=conselheiro))
    pagina = client.get('/aconselhamento/minha-agenda').get_data(as_text=True)
    assert 'Maria Souza' in pagina
    assert 'Pedro Lima' not in pagina

    assert client.get('/financeiro/').status_code == 302


def test_duplicado_ignora_caixa_do_nome_e_formato_do_telefone(igreja):
    servicos.criar_agendamento(igreja, _solicitante(telefone='(11) 99999-0000'), TOPICO, fila=True)
    with pytest.raises(ValueError, match='já possui um agendamento'):
        servicos.criar_agendamento(igreja, _solicitante('maria souza', 'outra@email.com', '11999990000'),
                                   TOPICO, fila=True)
    assert RegistroPendente.query.filter_by(papel=PAPEL_AGENDAMENTO).count() == 1


def test_emails_escapam_dados_do_formulario(igreja, conselheiro, admin, httpx_post):
    nome = '<a href="http://evil">Clique</a>'
    ag = servicos.criar_agendamento(igreja, _solicitante(nome=nome), TOPICO, conselheiro=conselheiro,
                                    data=proximo_dia(0), horario='09:00')
    servicos.alterar_status(ag, 'Cancelado', admin, motivo='<b>urgente</b>')

    corpo = httpx_post.call_args_list[-1].kwargs['json']['html']
    assert '<a href' not in corpo
    assert '&lt;a href=&#34;http://evil&#34;&gt;Clique&lt;/a&gt;' in corpo
    assert '&lt;b&gt;urgente&lt;/b&gt;' in corpo


def test_email_valido():
    assert servicos.email_valido('maria@email.com')
    assert not servicos.email_valido('maria@')
    assert not servicos.email_valido('maria@email')
    assert not servicos.email_valido('sem arroba')
    assert not servicos.email_valido(None)


def test_fila_usa_horario_da_igreja(igreja):
    from datetime import timedelta
    from ekklesia.registros.dados import agora_igreja, parse_data_hora
    ag = servicos.criar_agendamento(igreja, _solicitante(), TOPICO, fila=True)
    assert abs(parse_data_hora(ag.dados['date']) - agora_igreja()) < timedelta(minutes=2)


def test_limite_de_agendamento():
    from datetime import date
    from ekklesia.aconselhamento.agenda import limite_agendamento
    assert limite_agendamento(date(2025, 3, 15)) == date(2025, 5, 15)
    assert limite_agendamento(date(2025, 12, 31)) == date(2026, 2, 28)
    assert limite_agendamento(date(2025, 11, 30), meses=3) == date(2026, 2, 28)


def test_agendamento_publico_recusa_data_distante(client, igreja, conselheiro, httpx_post):
    from datetime import date, timedelta
    distante = proximo_dia(0, a_partir=date.today() + timedelta(days=70))
    resposta = client.post(f'/aconselhamento/publico/{igreja.id}/agendar', data={
        'nome': 'Maria Souza', 'email': 'maria@email.com', 'telefone': '11999990000',
        'topico': TOPICO, 'conselheiro_id': conselheiro.id, 'estado_civil': '', 'genero': '',
        'dia': distante.isoformat(), 'horario': '09:00', 'submit': 'Confirmar Agendamento',
    })

    assert resposta.status_code == 200
    assert 'Escolha uma data até' in resposta.get_data(as_text=True)
    assert RegistroPendente.query.filter_by(papel=PAPEL_AGENDAMENTO).count() == 0
