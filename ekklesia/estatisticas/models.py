from ekklesia.extensions import db
from datetime import datetime, date, timezone


class RegistroPresenca(db.Model):
    __tablename__ = 'registro_presenca'

    id = db.Column(db.Integer, primary_key=True)
    igreja_id = db.Column(db.Integer, db.ForeignKey('igreja.id'), nullable=False, index=True)
    data_culto = db.Column(db.Date, nullable=False, default=date.today, index=True)
    tipo_culto = db.Column(db.String(100), nullable=True)
    adultos = db.Column(db.Integer, nullable=False, default=0)
    criancas = db.Column(db.Integer, nullable=False, default=0)
    visitantes = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def total(self):
        return (self.adultos or 0) + (self.criancas or 0) + (self.visitantes or 0)

    def __repr__(self):
        return f'<RegistroPresenca {self.data_culto} {self.tipo_culto}: {self.total}>'
