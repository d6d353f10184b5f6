from collections import Counter, OrderedDict

from config import Config
from ekklesia.registros.dados import parse_data_hora
from .agenda import label_topico


def _dados(ag):
    return ag if isinstance(ag, dict) else ag.dados


def _status(ag):
    return ag.get('status') if isinstance(ag, dict) else ag.status


def filtrar_por_mes(agendamentos, mes):
    """``mes`` no formato ``AAAA-MM``; vazio devolve tudo."""
    if not mes:
        return list(agendamentos)
    resultado = []
    for ag in agendamentos:
        dt = parse_data_hora(_dados(ag).get('date'))
        if dt is not None and dt.strftime('%Y-%m') == mes:
            resultado.append(ag)
    return resultado


def resumo_atendimentos(agendamentos):
    contagem = Counter(_status(ag) for ag in agendamentos)
    return {
        'total': len(agendamentos),
        'na_fila': contagem['Na Fila'],
        'pendentes': contagem['Pendente'],
        'marcados': contagem['Marcado'] + contagem['Em Aconselhamento'],
        'concluidos': contagem['Concluído'],
        'cancelados': contagem['Cancelado'],
        'sem_retorno': contagem['Não houve retorno'],
    }


def _ordenado(contagem):
    return OrderedDict(sorted(contagem.items(), key=lambda item: (-item[1], item[0])))


def agrupar_por_conselheiro(agendamentos):
    contagem = Counter(_dados(ag).get('counselor_name') or 'Sem conselheiro' for ag in agendamentos)
    return _ordenado(contagem)


def agrupar_por_genero(agendamentos):
    contagem = Counter(_dados(ag).get('member_gender') or 'Não informado' for ag in agendamentos)
    return _ordenado(contagem)


def faixa_etaria(idade):
    try:
        idade = int(idade)
    except (ValueError, TypeError):
        return 'Não informado'
    for minimo, maximo, label in Config.FAIXAS_ETARIAS:
        if minimo <= idade <= maximo:
            return label
    return 'Não informado'


def agrupar_por_faixa_etaria(agendamentos):
    contagem = Counter(faixa_etaria(_dados(ag).get('member_age')) for ag in agendamentos)
    ordem = [label for _, _, label in Config.FAIXAS_ETARIAS] + ['Não informado']
    return OrderedDict((label, contagem[label]) for label in ordem if contagem[label])


def agrupar_por_topico(agendamentos):
    contagem = Counter(label_topico(_dados(ag).get('topic')) or 'Não informado' for ag in agendamentos)
    return _ordenado(contagem)


def estatisticas_completas(agendamentos, mes=None):
    selecionados = filtrar_por_mes(agendamentos, mes)
    return {
        'resumo': resumo_atendimentos(selecionados),
        'por_conselheiro': agrupar_por_conselheiro(selecionados),
        'por_genero': agrupar_por_genero(selecionados),
        'por_faixa_etaria': agrupar_por_faixa_etaria(selecionados),
        'por_topico': agrupar_por_topico(selecionados),
    }
