"""Geração de escalas mensais de voluntários para os cultos de domingo."""
import calendar
from datetime import date

from config import Config
from ekklesia.registros.dados import carregar_json

VAGAS_POR_CULTO = 2


def periodo_do_horario(horario):
    try:
        hora = int(str(horario).split(':')[0])
    except (ValueError, TypeError):
        return None
    if hora < 12:
        return 'Manhã'
    if hora < 18:
        return 'Tarde'
    return 'Noite'


def periodos_disponiveis(disponibilidade):
    """Mapa dia → lista de períodos.

    Aceita o formato ``{"Domingo": ["09:00"]}`` ou a lista
    ``[{"day": "Domingo", "periods": ["Manhã"]}]``.
    """
    dados = carregar_json(disponibilidade)
    resultado = {}
    if isinstance(dados, dict):
        for dia, horarios in dados.items():
            if not isinstance(horarios, (list, tuple)):
                continue
            periodos = {p for p in (periodo_do_horario(h) for h in horarios) if p}
            if periodos:
                resultado[dia] = [p for p in Config.PERIODOS if p in periodos]
    elif isinstance(dados, list):
        for item in dados:
            if not isinstance(item, dict) or not item.get('day'):
                continue
            periodos = [p for p in Config.PERIODOS if p in (item.get('periods') or [])]
            if periodos:
                resultado[item['day']] = periodos
    return resultado


def domingos_do_mes(mes):
    ano_, mes_ = (int(x) for x in mes.split('-'))
    _, ultimo = calendar.monthrange(ano_, mes_)
    return [date(ano_, mes_, d) for d in range(1, ultimo + 1) if date(ano_, mes_, d).weekday() == 6]


def _rodizio(candidatos, inicio, vagas):
    if not candidatos:
        return [], inicio
    escolhidos = []
    for i in range(min(vagas, len(candidatos))):
        escolhidos.append(candidatos[(inicio + i) % len(candidatos)])
    return escolhidos, (inicio + len(escolhidos)) % len(candidatos)


def gerar_escala(voluntarios, mes, vagas=VAGAS_POR_CULTO):
    """Escala de um mês ``AAAA-MM`` em rodízio.

    ``voluntarios`` é uma lista de objetos com ``nome`` e ``disponibilidade``.
    Cada domingo tem um culto pela manhã (10h) e outro à noite (18h); entram
    no rodízio apenas os voluntários com domingo disponível no período.
    """
    manha, noite = [], []
    for v in sorted(voluntarios, key=lambda v: v.nome):
        periodos = periodos_disponiveis(v.disponibilidade).get('Domingo', [])
        if 'Manhã' in periodos:
            manha.append(v.nome)
        if 'Noite' in periodos:
            noite.append(v.nome)

    semanas = []
    i_manha = i_noite = 0
    for n, domingo in enumerate(domingos_do_mes(mes), start=1):
        escolhidos_manha, i_manha = _rodizio(manha, i_manha, vagas)
        escolhidos_noite, i_noite = _rodizio(noite, i_noite, vagas)
        semanas.append({
            'week': f'Semana {n} ({domingo.strftime("%d/%m")})',
            'morningVolunteers': escolhidos_manha,
            'eveningVolunteers': escolhidos_noite,
        })
    return semanas


def mensagem_escala(nome_ministerio, semanas):
    linhas = [f'Olá! Segue a escala de voluntários do ministério *{nome_ministerio}*:', '']
    for semana in semanas:
        linhas.append(f"*{semana.get('week')}:*")
        linhas.append(f"  - *Manhã (10h):* {', '.join(semana.get('morningVolunteers') or []) or 'N/A'}")
        linhas.append(f"  - *Noite (18h):* {', '.join(semana.get('eveningVolunteers') or []) or 'N/A'}")
        linhas.append('')
    linhas.append('Obrigado pelo seu serviço e dedicação! 🙏')
    return '\n'.join(linhas)


def contagem_por_periodo(escalas):
    totais = {'Manhã': 0, 'Noite': 0}
    for escala in escalas:
        for semana in carregar_json(escala.dados_escala if hasattr(escala, 'dados_escala') else escala, []):
            totais['Manhã'] += len(semana.get('morningVolunteers') or [])
            totais['Noite'] += len(semana.get('eveningVolunteers') or [])
    return totais
