def serie_presenca(registros):
    """Séries para o gráfico de presença, em ordem cronológica."""
    ordenados = sorted(registros, key=lambda r: (r.data_culto, r.id or 0))
    return {
        'labels': [f'{r.data_culto.strftime("%d/%m")} {r.tipo_culto or ""}'.strip() for r in ordenados],
        'adultos': [r.adultos or 0 for r in ordenados],
        'criancas': [r.criancas or 0 for r in ordenados],
        'visitantes': [r.visitantes or 0 for r in ordenados],
        'totais': [r.total for r in ordenados],
    }


def resumo_presenca(registros):
    if not registros:
        return {'cultos': 0, 'total': 0, 'media': 0, 'maior': None, 'visitantes': 0}
    totais = [r.total for r in registros]
    return {
        'cultos': len(registros),
        'total': sum(totais),
        'media': round(sum(totais) / len(registros), 1),
        'maior': max(registros, key=lambda r: r.total),
        'visitantes': sum(r.visitantes or 0 for r in registros),
    }
