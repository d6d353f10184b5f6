from flask import Flask
from sqlalchemy import event
from .extensions import db, login_manager, migrate
from unidecode import unidecode

from .igrejas import models as igrejas_models
from .auth import models as auth_models
from .membresia import models as membresia_models
from .registros import models as registros_models
from .aconselhamento import models as aconselhamento_models
from .voluntariado import models as voluntariado_models
from .acolhimento import models as acolhimento_models
from .grupos import models as grupos_models
from .kids import models as kids_models
from .financeiro import models as financeiro_models
from .comunicacao import models as comunicacao_models
from .estatisticas import models as estatisticas_models
from .jornada import models as jornada_models

from .auth.routes import auth_bp
from .routes import main_bp
from .membresia.routes import membresia_bp
from .aconselhamento.routes import aconselhamento_bp
from .ministerios.routes import ministerios_bp
from .voluntariado.routes import voluntariado_bp
from .discipulado.routes import discipulado_bp
from .acolhimento.routes import acolhimento_bp
from .grupos.routes import grupos_bp
from .kids.routes import kids_bp
from .financeiro.routes import financeiro_bp
from .comunicacao.routes import comunicacao_bp
from .estatisticas.routes import estatisticas_bp
from .jornada.routes import jornada_bp
from .relatorios.routes import relatorios_bp
from .configuracoes.routes import configuracoes_bp

from ekklesia.filters import to_brasilia, format_datetime, format_currency, format_telefone
from config import Config
import os


def _registrar_unidecode(dbapi_connection, connection_record):
    dbapi_connection.create_function("unidecode", 1, unidecode)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    uri = app.config['SQLALCHEMY_DATABASE_URI']
    if uri.startswith('sqlite:///'):
        os.makedirs(os.path.dirname(uri.replace('sqlite:///', '', 1)), exist_ok=True)

    app.config['UPLOAD_FOLDER'] = os.path.join(app.root_path, 'static', 'uploads', 'avatars')
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    app.jinja_env.filters['brasilia'] = to_brasilia
    app.jinja_env.filters['format_datetime'] = format_datetime
    app.jinja_env.filters['currency'] = format_currency
    app.jinja_env.filters['telefone'] = format_telefone

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            event.listen(db.engine, 'connect', _registrar_unidecode)

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(membresia_bp)
    app.register_blueprint(aconselhamento_bp)
    app.register_blueprint(ministerios_bp)
    app.register_blueprint(voluntariado_bp)
    app.register_blueprint(discipulado_bp)
    app.register_blueprint(acolhimento_bp)
    app.register_blueprint(grupos_bp)
    app.register_blueprint(kids_bp)
    app.register_blueprint(financeiro_bp)
    app.register_blueprint(comunicacao_bp)
    app.register_blueprint(estatisticas_bp)
    app.register_blueprint(jornada_bp)
    app.register_blueprint(relatorios_bp)
    app.register_blueprint(configuracoes_bp)


    from .cli import init_db_command, criar_admin, seed_categorias, optimize_images_command
    app.cli.add_command(init_db_command)
    app.cli.add_command(criar_admin)
    app.cli.add_command(seed_categorias)
    app.cli.add_command(optimize_images_command)

    @app.context_processor
    def inject_config():
        return dict(config=app.config, jornada_config=app.config['JORNADA'])

    app.logger.info(f"Ekklesia Hub {app.config['VERSAO_APP']} iniciado")
    return app
