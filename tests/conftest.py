from datetime import date, timedelta
from unittest.mock import MagicMock, patch

import pytest

from flask import g

from config import TestConfig
from ekklesia import create_app
from ekklesia.extensions import db
from ekklesia.auth.models import User
from ekklesia.igrejas.servicos import criar_igreja_com_dono


def proximo_dia(dia_semana, a_partir=None):
    """Próxima data (a partir de amanhã) com o ``weekday()`` pedido."""
    dia = (a_partir or date.today()) + timedelta(days=1)
    while dia.weekday() != dia_semana:
        dia += timedelta(days=1)
    return dia


def entrar(client, usuario):
    with client.session_transaction() as sessao:
        sessao['_user_id'] = str(usuario.id)
        sessao['_fresh'] = True
    # A fixture ``app`` mantém um app context aberto; o Flask-Login guarda o
    # usuário em ``g``, que seria reaproveitado entre requisições.
    g.pop('_login_user', None)


def resposta_http(sucesso=True, status=200, texto='ok'):
    return MagicMock(is_success=sucesso, status_code=status, text=texto,
                     reason_phrase='OK' if sucesso else 'Internal Server Error')


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def igreja(app):
    igreja, _ = criar_igreja_com_dono('Igreja Esperança', 'Pastor João Silva', 'joao@esperanca.org', 'senha-forte-123')
    return igreja


@pytest.fixture
def admin(igreja):
    return db.session.get(User, igreja.dono_id)


@pytest.fixture
def criar_usuario(igreja):
    def _criar(papel, email=None, nome=None, igreja_id=None, conselheiro=None):
        usuario = User(
            nome=nome or f'Usuário {papel}',
            email=email or f'{papel.lower()}@esperanca.org',
            papel=papel,
            igreja_id=igreja_id or igreja.id,
            conselheiro_id=conselheiro.id if conselheiro else None,
        )
        usuario.set_password('senha-forte-123')
        db.session.add(usuario)
        db.session.commit()
        return usuario
    return _criar


@pytest.fixture
def admin_client(client, admin):
    entrar(client, admin)
    return client


@pytest.fixture
def outra_igreja(app):
    igreja, _ = criar_igreja_com_dono('Igreja Vizinha', 'Pastora Ana', 'ana@vizinha.org', 'senha-forte-123')
    return igreja


@pytest.fixture
def httpx_post():
    """Integrações externas (webhook de WhatsApp e Resend) respondendo com sucesso."""
    with patch('ekklesia.comunicacao.integracoes.httpx.post') as post:
        post.return_value = resposta_http()
        yield post
