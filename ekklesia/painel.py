"""Indicadores do painel inicial."""
from datetime import datetime, timedelta, timezone

from ekklesia.membresia.models import Membro, Visitante, PastorLider
from ekklesia.voluntariado.models import Voluntario
from ekklesia.aconselhamento.models import Conselheiro
from ekklesia.acolhimento.models import NovoComeco
from ekklesia.grupos.models import PequenoGrupo
from ekklesia.jornada.models import JornadaEvento

MESES = ['Jan', 'Fev', 'Mar', 'Abr', 'Mai', 'Jun', 'Jul', 'Ago', 'Set', 'Out', 'Nov', 'Dez']


def metricas(igreja_id, agora=None):
    agora = agora or datetime.now(timezone.utc)
    trinta_dias = (agora - timedelta(days=30)).replace(tzinfo=None)

    membros = Membro.query.filter_by(igreja_id=igreja_id, papel='Membro').count()
    lideres_pastores = PastorLider.query.filter_by(igreja_id=igreja_id).all()
    voluntarios = Voluntario.query.filter_by(igreja_id=igreja_id).count()
    conselheiros = Conselheiro.query.filter_by(igreja_id=igreja_id).count()
    visitantes = Visitante.query.filter_by(igreja_id=igreja_id).count()

    return {
        'total_pessoas': membros + len(lideres_pastores) + voluntarios + conselheiros + visitantes,
        'total_membros': membros,
        'visitantes_mes': Visitante.query.filter(Visitante.igreja_id == igreja_id,
                                                 Visitante.created_at >= trinta_dias).count(),
        'novos_comecos_mes': NovoComeco.query.filter(NovoComeco.igreja_id == igreja_id,
                                                     NovoComeco.created_at >= trinta_dias).count(),
        'total_grupos': PequenoGrupo.query.filter_by(igreja_id=igreja_id).count(),
        'total_lideres': sum(1 for p in lideres_pastores if p.papel in ('Líder', 'Líder de Pequeno Grupo')),
        'total_pastores': sum(1 for p in lideres_pastores if p.papel == 'Pastor'),
        'total_voluntarios': voluntarios,
    }


def demografia(igreja_id):
    contagem = {}
    for (genero,) in Membro.query.filter_by(igreja_id=igreja_id).with_entities(Membro.genero).all():
        chave = genero or 'Não informado'
        contagem[chave] = contagem.get(chave, 0) + 1
    return contagem


def crescimento(igreja_id, meses=6, agora=None):
    """Novos membros por mês nos últimos ``meses`` meses (inclui o atual)."""
    agora = agora or datetime.now(timezone.utc)
    chaves = []
    ano_ref, mes_ref = agora.year, agora.month
    for _ in range(meses):
        chaves.append((ano_ref, mes_ref))
        mes_ref -= 1
        if mes_ref == 0:
            ano_ref, mes_ref = ano_ref - 1, 12
    chaves.reverse()

    contagem = {k: 0 for k in chaves}
    inicio = datetime(chaves[0][0], chaves[0][1], 1)
    for (criado,) in Membro.query.filter(Membro.igreja_id == igreja_id, Membro.created_at >= inicio) \
            .with_entities(Membro.created_at).all():
        chave = (criado.year, criado.month)
        if chave in contagem:
            contagem[chave] += 1

    return {
        'labels': [f'{MESES[m - 1]}/{str(a)[2:]}' for a, m in chaves],
        'valores': [contagem[k] for k in chaves],
    }


def atividades_recentes(igreja_id, limite=10):
    return JornadaEvento.query.filter_by(igreja_id=igreja_id) \
        .order_by(JornadaEvento.data_evento.desc()).limit(limite).all()
