"""Cálculo de horários de atendimento a partir da disponibilidade semanal.

A disponibilidade é um mapa ``{"Domingo": ["09:00", ...], ...}``. Um horário
fica ocupado quando existe atendimento ativo do conselheiro no mesmo dia e
no mesmo ``HH:MM``.
"""
import re
import calendar
from datetime import date, datetime

from config import Config
from ekklesia.registros.dados import carregar_json, parse_data_hora

_HORARIO = re.compile(r'^(\d{1,2}):(\d{2})(?::\d{2})?$')


def nome_dia(data):
    # weekday(): segunda = 0; DIAS_SEMANA começa no domingo
    return Config.DIAS_SEMANA[(data.weekday() + 1) % 7]


def limite_agendamento(hoje=None, meses=None):
    """Último dia aceito no agendamento público: hoje mais ``meses`` meses, sem passar do fim do mês."""
    hoje = hoje or date.today()
    meses = Config.MESES_AGENDAMENTO_PUBLICO if meses is None else meses
    ano, mes = divmod(hoje.month - 1 + meses, 12)
    ano, mes = hoje.year + ano, mes + 1
    return date(ano, mes, min(hoje.day, calendar.monthrange(ano, mes)[1]))


def normalizar_horario(valor):
    if not isinstance(valor, str):
        return None
    m = _HORARIO.match(valor.strip())
    if not m:
        return None
    hora, minuto = int(m.group(1)), int(m.group(2))
    if hora > 23 or minuto > 59:
        return None
    return f'{hora:02d}:{minuto:02d}'


def normalizar_disponibilidade(valor):
    dados = carregar_json(valor, {})
    resultado = {}
    for dia, horarios in dados.items():
        if dia not in Config.DIAS_SEMANA or not isinstance(horarios, (list, tuple)):
            continue
        validos = {h for h in (normalizar_horario(x) for x in horarios) if h}
        if validos:
            resultado[dia] = sorted(validos)
    return resultado


def dias_disponiveis(disponibilidade):
    """Índices (0 = domingo) dos dias com ao menos um horário."""
    disp = normalizar_disponibilidade(disponibilidade)
    return [i for i, dia in enumerate(Config.DIAS_SEMANA) if disp.get(dia)]


def _como_data(data):
    if isinstance(data, datetime):
        return data.date()
    if isinstance(data, date):
        return data
    if isinstance(data, str):
        dt = parse_data_hora(data)
        if dt is None:
            try:
                return date.fromisoformat(data[:10])
            except ValueError:
                return None
        return dt.date()
    return None


def horarios_ocupados(agendamentos, data):
    """Horários já tomados no dia por atendimentos ativos.

    ``agendamentos`` aceita objetos com ``status`` e ``dados`` ou dicts
    ``{"status", "date"}``.
    """
    dia = _como_data(data)
    ocupados = set()
    if dia is None:
        return ocupados
    for ag in agendamentos or []:
        if isinstance(ag, dict):
            status, quando = ag.get('status'), ag.get('date')
        else:
            status, quando = ag.status, ag.dados.get('date')
        if status not in Config.STATUS_AGENDAMENTO_ATIVOS:
            continue
        dt = parse_data_hora(quando)
        if dt is not None and dt.date() == dia:
            ocupados.add(dt.strftime('%H:%M'))
    return ocupados


def horarios_do_dia(disponibilidade, agendamentos, data):
    dia = _como_data(data)
    if dia is None:
        return []
    base = normalizar_disponibilidade(disponibilidade).get(nome_dia(dia), [])
    ocupados = horarios_ocupados(agendamentos, dia)
    return [{'horario': h, 'ocupado': h in ocupados} for h in sorted(base)]


def horarios_livres(disponibilidade, agendamentos, data):
    return [h['horario'] for h in horarios_do_dia(disponibilidade, agendamentos, data) if not h['ocupado']]


def horario_disponivel(disponibilidade, agendamentos, data, horario):
    return normalizar_horario(horario) in horarios_livres(disponibilidade, agendamentos, data)


def label_topico(topico):
    for t in Config.TOPICOS_ACONSELHAMENTO:
        if topico in (t['id'], t['label']):
            return t['label']
    return topico or ''


def conselheiros_para_topico(conselheiros, topico_label, genero=None):
    topico_label = topico_label or ''
    selecionados = []
    for c in conselheiros:
        topicos = c.lista_topicos if hasattr(c, 'lista_topicos') else list(c.get('topicos') or [])
        if not any(t and t in topico_label for t in topicos):
            continue
        genero_c = c.genero if hasattr(c, 'genero') else c.get('genero')
        if genero and genero != 'Outro' and genero != genero_c:
            continue
        selecionados.append(c)
    return selecionados


def disponibilidade_de_texto(texto):
    """Converte linhas ``Dia: HH:MM, HH:MM`` no mapa de disponibilidade."""
    bruto = {}
    for linha in (texto or '').splitlines():
        if ':' not in linha:
            continue
        dia, horarios = linha.split(':', 1)
        bruto.setdefault(dia.strip(), []).extend(h.strip() for h in horarios.split(','))
    return normalizar_disponibilidade(bruto)


def disponibilidade_para_texto(disponibilidade):
    disp = normalizar_disponibilidade(disponibilidade)
    return '\n'.join(f'{dia}: {", ".join(disp[dia])}' for dia in Config.DIAS_SEMANA if dia in disp)
