# backend/storefront/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.from_mapping(test_config)

    # Tokens cannot be issued or verified without a key; refuse to start.
    if not app.config.get("JWT_SIGNING_KEY"):
        raise RuntimeError("JWT_SIGNING_KEY is not configured")

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Auth services live on app.extensions so tests can build isolated apps
    from .services.password_hasher import PasswordHasher
    from .services.token_service import TokenService
    from .services.user_directory import UserDirectory

    app.extensions["password_hasher"] = PasswordHasher(app.config.get("BCRYPT_WORK_FACTOR"))
    app.extensions["token_service"] = TokenService(
        signing_key=app.config["JWT_SIGNING_KEY"],
        issuer=app.config["JWT_ISSUER"],
        audience=app.config["JWT_AUDIENCE"],
    )
    app.extensions["user_directory"] = UserDirectory(
        default_ttl=int(app.config.get("CACHE_TIMEOUT_SECONDS", 300)),
    )

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.users import users_bp
    from .routes.roles import roles_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.variants import variants_bp
    from .routes.cart import cart_bp
    from .routes.orders import orders_bp
    from .routes.order_items import order_items_bp
    from .routes.payments import payments_bp
    from .routes.shipping import shipping_bp
    from .routes.reviews import reviews_bp
    from .routes.complaints import complaints_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(variants_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(order_items_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(shipping_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(complaints_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
