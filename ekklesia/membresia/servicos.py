"""Busca de pessoas, fotos de perfil e revisão de inscrições."""
import os
import uuid
from datetime import date

from flask import current_app
from PIL import Image
from sqlalchemy import func
from unidecode import unidecode
from werkzeug.datastructures import FileStorage
from ekklesia.extensions import db
from ekklesia.registros.models import RegistroPendente, PAPEIS_INSCRICAO
from ekklesia.registros.dados import adicionar_atividade
from .models import Membro, PastorLider

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif'}
AVATAR_SIZE = (200, 200)
COMPRESSION_QUALITY = 75

PAPEIS_LIDERANCA = ['Pastor', 'Líder', 'Coordenador']


def allowed_file(filename):
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def otimizar_imagem(origem, destino):
    img = Image.open(origem)
    img.thumbnail(AVATAR_SIZE, Image.Resampling.LANCZOS)
    if img.mode in ('RGBA', 'P'):
        img = img.convert('RGB')
    img.save(destino, format='JPEG', quality=COMPRESSION_QUALITY, optimize=True)


def salvar_avatar(file_data):
    """Redimensiona e grava a foto enviada; devolve o nome do arquivo ou None se inválida."""
    if not isinstance(file_data, FileStorage) or not allowed_file(file_data.filename or ''):
        return None

    upload_folder = current_app.config['UPLOAD_FOLDER']
    nome_arquivo = f'{uuid.uuid4()}.jpg'
    try:
        otimizar_imagem(file_data, os.path.join(upload_folder, nome_arquivo))
        return nome_arquivo
    except Exception as e:
        current_app.logger.error(f'Erro ao processar e salvar a imagem: {e}')
        return None


def remover_avatar(nome_arquivo):
    if not nome_arquivo or nome_arquivo == 'default.jpg':
        return
    caminho = os.path.join(current_app.config['UPLOAD_FOLDER'], nome_arquivo)
    if os.path.exists(caminho):
        os.remove(caminho)


def filtro_nome(coluna, busca):
    """Filtro por nome sem acentos e sem diferenciar maiúsculas."""
    busca_db = f'%{unidecode(busca).lower()}%'
    return func.lower(func.unidecode(coluna)).like(busca_db)


def buscar_membros(query, busca=None, papel=None, status=None):
    if busca:
        query = query.filter(filtro_nome(Membro.nome, busca))
    if papel:
        query = query.filter(Membro.papel == papel)
    if status:
        query = query.filter(Membro.status == status)
    return query


def inscricoes_pendentes(igreja_id):
    return RegistroPendente.query.filter(
        RegistroPendente.igreja_id == igreja_id,
        RegistroPendente.papel.in_(PAPEIS_INSCRICAO),
        RegistroPendente.status == 'Pendente',
    ).order_by(RegistroPendente.created_at).all()


def criar_inscricao(igreja_id, nome, email, telefone, papel='Membro', dados=None):
    if papel not in PAPEIS_INSCRICAO:
        raise ValueError(f'Papel inválido: {papel}')
    registro = RegistroPendente(
        igreja_id=igreja_id, nome=nome, email=email, telefone=telefone, papel=papel, status='Pendente',
        form_data=adicionar_atividade(dados or {}, 'created', 'Cadastro enviado pelo formulário público.'),
    )
    db.session.add(registro)
    db.session.commit()
    return registro


def _data_iso(valor):
    if not valor:
        return None
    try:
        return date.fromisoformat(valor)
    except (TypeError, ValueError):
        return None


def aprovar_inscricao(registro, usuario):
    """Cria o membro (e o perfil de liderança quando for o caso) a partir da inscrição."""
    if registro.papel not in PAPEIS_INSCRICAO:
        raise ValueError('Este registro não é uma inscrição de cadastro.')
    if registro.status != 'Pendente':
        raise ValueError('Esta inscrição já foi analisada.')

    dados = registro.dados
    membro = Membro(
        igreja_id=registro.igreja_id,
        nome=registro.nome,
        email=registro.email,
        telefone=registro.telefone,
        papel=registro.papel,
        status='Ativo',
        genero=dados.get('gender'),
        data_nascimento=_data_iso(dados.get('birthdate')),
        estado_civil=dados.get('marital_status'),
        endereco=dados.get('address'),
        profissao=dados.get('profession'),
        igreja_origem=dados.get('origin_church'),
        batizado=bool(dados.get('baptized')),
        duvidas=dados.get('questions'),
    )
    db.session.add(membro)
    if registro.papel in PAPEIS_LIDERANCA:
        db.session.add(PastorLider(igreja_id=registro.igreja_id, nome=registro.nome, email=registro.email,
                                   telefone=registro.telefone, papel=registro.papel, form_data=dados))

    registro.status = 'Aprovado'
    registro.form_data = adicionar_atividade(registro.form_data, 'approved', 'Inscrição aprovada.', usuario)
    db.session.commit()
    return membro


def recusar_inscricao(registro, usuario, motivo=None):
    if registro.status != 'Pendente':
        raise ValueError('Esta inscrição já foi analisada.')
    registro.status = 'Recusado'
    registro.form_data = adicionar_atividade(registro.form_data, 'rejected', motivo or 'Inscrição recusada.', usuario)
    db.session.commit()
    return registro
