"""Leitura tolerante dos campos JSON (``form_data``, ``availability``...).

Os blobs chegam como dict, lista, string JSON ou ``None`` dependendo de quem
os gravou. Estas funções nunca levantam exceção para dados malformados: elas
devolvem o valor padrão.
"""
import copy
import json
import uuid
from datetime import datetime, timezone

from pytz import timezone as pytz_timezone
from config import Config

FUSO_IGREJA = pytz_timezone(Config.TIMEZONE)


def carregar_json(valor, padrao=None):
    if valor is None or valor == '':
        return copy.deepcopy(padrao)

    if isinstance(valor, (bytes, bytearray)):
        valor = valor.decode('utf-8', errors='replace')

    if isinstance(valor, str):
        try:
            valor = json.loads(valor)
        except (ValueError, TypeError):
            return copy.deepcopy(padrao)

    if padrao is not None and not isinstance(valor, type(padrao)):
        return copy.deepcopy(padrao)

    return copy.deepcopy(valor)


def lista_de(valor):
    if valor is None or valor == '':
        return []
    if isinstance(valor, str):
        carregado = carregar_json(valor)
        if isinstance(carregado, list):
            return carregado
        return [valor]
    if isinstance(valor, (list, tuple, set)):
        return list(valor)
    return [valor]


def ids_de(valor):
    """Lista de ids inteiros, ignorando entradas inválidas e repetidas."""
    resultado = []
    for item in lista_de(valor):
        try:
            id_ = int(item)
        except (ValueError, TypeError):
            continue
        if id_ not in resultado:
            resultado.append(id_)
    return resultado


def nova_atividade(acao, detalhes, usuario=None):
    nome_usuario = 'Sistema'
    if usuario is not None and getattr(usuario, 'is_authenticated', False):
        nome_usuario = usuario.nome
    return {
        'id': str(uuid.uuid4()),
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'user': nome_usuario,
        'action': acao,
        'details': detalhes,
    }


def adicionar_atividade(form_data, acao, detalhes, usuario=None):
    dados = carregar_json(form_data, {})
    atividades = lista_de(dados.get('activities'))
    atividades.append(nova_atividade(acao, detalhes, usuario))
    dados['activities'] = atividades
    return dados


def atualizar_dados(form_data, **campos):
    dados = carregar_json(form_data, {})
    dados.update(campos)
    return dados


def parse_data_hora(valor):
    """Converte o valor para datetime local ingênuo (sem tzinfo).

    Strings com sufixo ``Z`` ou deslocamento são convertidas para o fuso da
    igreja antes de descartar o tzinfo.
    """
    if valor is None or valor == '':
        return None
    if isinstance(valor, datetime):
        dt = valor
    elif isinstance(valor, str):
        try:
            dt = datetime.fromisoformat(valor.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(FUSO_IGREJA).replace(tzinfo=None)
    return dt


def data_hora_iso(dt):
    return dt.replace(second=0, microsecond=0).strftime('%Y-%m-%dT%H:%M:%S')


def agora_igreja():
    """Data e hora atuais no fuso da igreja, sem tzinfo, como as demais datas gravadas."""
    return datetime.now(FUSO_IGREJA).replace(tzinfo=None)
