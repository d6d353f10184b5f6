from ekklesia.extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, timezone
from config import Config


class User(db.Model, UserMixin):
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)

    papel = db.Column(db.String(50), nullable=False, default='Membro')

    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=True, index=True)
    igreja = db.relationship('Igreja', foreign_keys=[igreja_id], backref='usuarios')

    membro_id = db.Column(db.Integer, db.ForeignKey('membro.id'), unique=True, nullable=True)
    membro = db.relationship('Membro', back_populates='user')

    conselheiro_id = db.Column(db.Integer, db.ForeignKey('conselheiro.id'), unique=True, nullable=True)
    conselheiro = db.relationship('Conselheiro', backref=db.backref('user', uselist=False))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def acesso_total(self):
        return self.papel in Config.PAPEIS_ACESSO_TOTAL

    def pode_ver(self, area):
        if not self.papel:
            return False
        if self.acesso_total:
            return True
        return area in Config.AREAS_POR_PAPEL.get(self.papel, [])

    def __repr__(self):
        return f'<User {self.email}>'
