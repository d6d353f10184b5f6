from datetime import date

from ekklesia.aconselhamento.agenda import (nome_dia, normalizar_horario, normalizar_disponibilidade,
                                            dias_disponiveis, horarios_do_dia, horarios_livres,
                                            horario_disponivel, conselheiros_para_topico,
                                            disponibilidade_de_texto, disponibilidade_para_texto, label_topico)

SEGUNDA = date(2025, 3, 10)
DISPONIBILIDADE = {'Segunda': ['09:00', '10:00', '14:00'], 'Quarta': ['19:00']}


def test_nome_dia_comeca_no_domingo():
    assert nome_dia(SEGUNDA) == 'Segunda'
    assert nome_dia(date(2025, 3, 9)) == 'Domingo'


def test_normalizar_horario():
    assert normalizar_horario('9:00') == '09:00'
    assert normalizar_horario('09:00:00') == '09:00'
    assert normalizar_horario('25:00') is None
    assert normalizar_horario('manhã') is None


def test_normalizar_disponibilidade_descarta_dias_e_horarios_invalidos():
    bruto = '{"Segunda": ["10:00", "9:00", "x"], "Feriado": ["10:00"], "Terça": []}'
    assert normalizar_disponibilidade(bruto) == {'Segunda': ['09:00', '10:00']}


def test_dias_disponiveis():
    assert dias_disponiveis(DISPONIBILIDADE) == [1, 3]


def test_horarios_ocupados_so_contam_atendimentos_ativos():
    agendamentos = [
        {'status': 'Marcado', 'date': '2025-03-10T09:00:00'},
        {'status': 'Cancelado', 'date': '2025-03-10T10:00:00'},
        {'status': 'Pendente', 'date': '2025-03-17T14:00:00'},
    ]
    horarios = horarios_do_dia(DISPONIBILIDADE, agendamentos, SEGUNDA)
    assert horarios == [
        {'horario': '09:00', 'ocupado': True},
        {'horario': '10:00', 'ocupado': False},
        {'horario': '14:00', 'ocupado': False},
    ]
    assert horarios_livres(DISPONIBILIDADE, agendamentos, SEGUNDA) == ['10:00', '14:00']


def test_horario_disponivel():
    assert horario_disponivel(DISPONIBILIDADE, [], SEGUNDA, '9:00')
    assert not horario_disponivel(DISPONIBILIDADE, [], SEGUNDA, '11:00')
    assert not horario_disponivel(DISPONIBILIDADE, [], date(2025, 3, 11), '09:00')


def test_conselheiros_para_topico_filtra_por_genero():
    conselheiros = [
        {'nome': 'Carlos', 'genero': 'Masculino', 'topicos': ['Casamento']},
        {'nome': 'Marta', 'genero': 'Feminino', 'topicos': ['Casamento', 'Filhos']},
        {'nome': 'Paulo', 'genero': 'Masculino', 'topicos': ['Vícios']},
    ]
    topico = label_topico('casamento')
    assert [c['nome'] for c in conselheiros_para_topico(conselheiros, topico)] == ['Carlos', 'Marta']
    assert [c['nome'] for c in conselheiros_para_topico(conselheiros, topico, 'Feminino')] == ['Marta']
    assert [c['nome'] for c in conselheiros_para_topico(conselheiros, topico, 'Outro')] == ['Carlos', 'Marta']


def test_disponibilidade_texto_ida_e_volta():
    texto = 'Quarta: 19:00\nSegunda: 14:00, 9:00\nlinha sem horário'
    disp = disponibilidade_de_texto(texto)
    assert disp == {'Quarta': ['19:00'], 'Segunda': ['09:00', '14:00']}
    assert disponibilidade_para_texto(disp) == 'Segunda: 09:00, 14:00\nQuarta: 19:00'
