from logging.config import dictConfig

from flask import Flask, jsonify
from .extensions import db, migrate, login_manager
from .config import Config
from .errors import register_error_handlers


def configure_logging(level):
    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "[%(asctime)s] %(levelname)s in %(name)s: %(message)s"},
        },
        "handlers": {
            "wsgi": {
                "class": "logging.StreamHandler",
                "stream": "ext://flask.logging.wsgi_errors_stream",
                "formatter": "default",
            },
        },
        "loggers": {
            "houseexpenses": {"level": level, "handlers": ["wsgi"], "propagate": False},
        },
    })


def create_app(config_object=Config):
    configure_logging(config_object.LOG_LEVEL)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"ok": False, "error": "UNAUTHORIZED", "message": "Authentication required"}), 401

    from .blueprints.auth.routes import auth_bp
    from .blueprints.categories.routes import categories_bp
    from .blueprints.expenses.routes import expenses_bp
    from .blueprints.budgets.routes import budgets_bp
    from .blueprints.alerts.routes import alerts_bp
    from .blueprints.dashboard.routes import dashboard_bp
    from .blueprints.reports.routes import reports_bp

    # Ensure tables exist for a smooth first run
    with app.app_context():
        from . import models  # noqa: F401
        db.create_all()

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(budgets_bp)
    app.register_blueprint(alerts_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(reports_bp)
    register_error_handlers(app)

    @app.route("/")
    def root():
        return jsonify({"ok": True, "data": {"service": "houseexpenses"}})

    return app
