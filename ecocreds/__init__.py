# --- ecocreds/__init__.py ---
import logging
from flask import Flask, jsonify
from .extensions import db, jwt, cors, migrate
from .config import Config

logger = logging.getLogger(__name__)

def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger("ecocreds").setLevel(level)

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    config_object = config_object or Config
    app.config.from_object(config_object)
    config_object.init_app(app)
    _configure_logging(app)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    migrate.init_app(app, db)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .checkout import bp as checkout_bp; app.register_blueprint(checkout_bp)
    from .rewards import bp as rewards_bp; app.register_blueprint(rewards_bp)
    from .activity import bp as activity_bp; app.register_blueprint(activity_bp)
    from .recycle import bp as recycle_bp; app.register_blueprint(recycle_bp)

    from .utils.api import register_error_handlers
    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def index():
        return jsonify(ok=True, msg="EcoCreds API running")

    @app.get("/api/health")
    def health():
        return jsonify(status="healthy", environment=app.config.get("ENV"))

    with app.app_context():
        from . import model  # noqa: F401
        db.create_all()

    logger.info("EcoCreds app created (db=%s)", app.config["SQLALCHEMY_DATABASE_URI"])
    return app
