from ekklesia.extensions import db
from datetime import datetime, timezone
from flask import abort
from flask_login import current_user


class Igreja(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(150), nullable=False)
    cnpj = db.Column(db.String(20), nullable=True)
    endereco = db.Column(db.String(255), nullable=True)
    telefone = db.Column(db.String(30), nullable=True)
    pastor_titular_nome = db.Column(db.String(120), nullable=True)
    pastor_titular_email = db.Column(db.String(120), nullable=True)
    dono_id = db.Column(db.Integer, db.ForeignKey('user.id', use_alter=True, name='fk_igreja_dono'), nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<Igreja {self.nome}>'


def igreja_atual_id():
    if not current_user.is_authenticated or not current_user.igreja_id:
        abort(403)
    return current_user.igreja_id


def consulta_igreja(model):
    """Query do modelo restrita à igreja do usuário logado."""
    return model.query.filter(model.igreja_id == igreja_atual_id())


def obter_da_igreja_or_404(model, id):
    return consulta_igreja(model).filter(model.id == id).first_or_404()


def igreja_publica_or_404(igreja_id):
    igreja = db.session.get(Igreja, igreja_id)
    if igreja is None:
        abort(404)
    return igreja
