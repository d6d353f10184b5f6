from flask import current_app
from ekklesia.extensions import db
from ekklesia.auth.models import User
from ekklesia.membresia.models import Membro, PastorLider
from .models import Igreja


def criar_igreja_com_dono(nome_igreja, nome, email, senha, cnpj=None, telefone=None, endereco=None):
    """Cria a igreja, o usuário administrador e os perfis de membro e pastor do dono."""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise ValueError('Email já cadastrado.')

    igreja = Igreja(nome=nome_igreja, cnpj=cnpj, telefone=telefone, endereco=endereco,
                    pastor_titular_nome=nome, pastor_titular_email=email)
    db.session.add(igreja)
    db.session.flush()

    membro = Membro(igreja_id=igreja.id, nome=nome, email=email, telefone=telefone, papel='Pastor', status='Ativo')
    db.session.add(membro)
    db.session.flush()

    usuario = User(nome=nome, email=email, papel='Administrador', igreja_id=igreja.id, membro_id=membro.id)
    usuario.set_password(senha)
    db.session.add(usuario)
    db.session.add(PastorLider(igreja_id=igreja.id, nome=nome, email=email, telefone=telefone, papel='Pastor'))
    db.session.flush()

    igreja.dono_id = usuario.id
    db.session.commit()
    current_app.logger.info(f'Igreja {igreja.nome} (#{igreja.id}) criada por {email}')
    return igreja, usuario


def associar_usuario(usuario, igreja):
    """Vincula uma conta sem igreja; o perfil de membro fica pendente de validação."""
    if usuario.igreja_id:
        raise ValueError('Sua conta já está associada a uma igreja.')

    membro = Membro.query.filter_by(igreja_id=igreja.id, email=usuario.email).first()
    if membro is None:
        membro = Membro(igreja_id=igreja.id, nome=usuario.nome, email=usuario.email, papel='Membro', status='Pendente')
        db.session.add(membro)
        db.session.flush()
    if membro.user is None:
        usuario.membro_id = membro.id
    usuario.igreja_id = igreja.id
    usuario.papel = usuario.papel or 'Membro'
    db.session.commit()
    return membro
