from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate

from app.config import Config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Register blueprints
    from app.routes.intake import bp as intake_bp
    from app.routes.orders import bp as orders_bp
    from app.routes.batches import bp as batches_bp
    from app.routes.stats import bp as stats_bp
    from app.routes.auth import bp as auth_bp
    from app.routes.settings import bp as settings_bp
    from app.routes.catalog import bp as catalog_bp

    app.register_blueprint(intake_bp, url_prefix="/intake")
    app.register_blueprint(orders_bp, url_prefix="/orders")
    app.register_blueprint(batches_bp, url_prefix="/batches")
    app.register_blueprint(stats_bp, url_prefix="/stats")
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(settings_bp, url_prefix="/settings")
    app.register_blueprint(catalog_bp, url_prefix="/catalog")

    from app.errors import register_error_handlers
    register_error_handlers(app)

    # Make sure every model is registered on the metadata
    with app.app_context():
        from app.models import User, Batch, Order, Settings  # noqa: F401

    return app
