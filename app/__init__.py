"""Factory pattern pour l'application Flask Wine Cellar."""

import os
from flask import Flask, render_template
from flask_login import LoginManager, current_user
from flask_wtf.csrf import CSRFProtect
from werkzeug.middleware.proxy_fix import ProxyFix
import logging

from app.models import db, User
from app.exceptions import WineCellarException
from config import Config
from services.image_storage import ImageStorage
from services.stripe_client import StripeClient


csrf = CSRFProtect()


def create_app(config_class=Config):
    """Factory pour créer et configurer l'application Flask."""

    # Déterminer le chemin de base du projet (parent du dossier app)
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    template_dir = os.path.join(base_dir, 'templates')
    static_dir = os.path.join(base_dir, 'static')

    flask_app = Flask(__name__,
                     template_folder=template_dir,
                     static_folder=static_dir)
    flask_app.config.from_object(config_class)
    flask_app.config['SECRET_KEY'] = Config.resolve_secret_key(
        flask_app.config.get('APP_ENV'), flask_app.config.get('SECRET_KEY')
    )

    # Derrière un reverse proxy, remote_addr devient l'adresse transmise par le proxy
    proxy_count = flask_app.config.get('TRUSTED_PROXY_COUNT') or 0
    if proxy_count > 0:
        flask_app.wsgi_app = ProxyFix(flask_app.wsgi_app, x_for=proxy_count, x_proto=proxy_count)

    # Configuration du logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    flask_app.logger.setLevel(logging.INFO)

    # Initialiser les extensions
    db.init_app(flask_app)
    csrf.init_app(flask_app)

    # Services externes (paiement et stockage des photos)
    flask_app.extensions['stripe_client'] = StripeClient.from_config(flask_app.config)
    flask_app.extensions['image_storage'] = ImageStorage.from_config(flask_app.config)

    @flask_app.after_request
    def set_security_headers(response):
        """Ajoute des en-têtes de sécurité de base pour toutes les réponses."""

        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; "
            "img-src 'self' data: https:; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "script-src 'self' https://cdn.jsdelivr.net; "
            "font-src 'self' https://cdn.jsdelivr.net data:; "
            "form-action 'self' https://checkout.stripe.com https://billing.stripe.com"
        )
        if flask_app.config.get('APP_ENV') == 'production':
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")

        # Pas de mise en cache des pages privées
        if current_user.is_authenticated:
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response

    # Configuration de Flask-Login
    login_manager = LoginManager(flask_app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Veuillez vous connecter pour accéder à votre cave."

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Enregistrer les filtres Jinja2
    from app import field_config
    from app.utils.formatters import base_query_string, format_price, safe_url, sort_url
    flask_app.jinja_env.filters['safe_url'] = safe_url
    flask_app.jinja_env.filters['price'] = format_price
    flask_app.jinja_env.filters['currency_symbol'] = field_config.currency_symbol
    flask_app.jinja_env.globals.update(
        sort_url=sort_url,
        base_query_string=base_query_string,
        wine_categories=field_config.WINE_CATEGORIES,
        wine_types=field_config.WINE_TYPES,
        bottle_sizes=field_config.BOTTLE_SIZES,
        currencies=field_config.CURRENCIES,
    )

    # Hooks before_request
    from app.utils.decorators import ensure_db
    flask_app.before_request(ensure_db)

    # Gestion des erreurs
    @flask_app.errorhandler(WineCellarException)
    def handle_app_error(error):
        status_code = getattr(error, 'status_code', 500)
        if status_code >= 500:
            flask_app.logger.error("Erreur applicative: %s", error)
        return render_template('error.html', status_code=status_code, message=str(error)), status_code

    @flask_app.errorhandler(404)
    def handle_not_found(error):
        return render_template('error.html', status_code=404, message="Page introuvable."), 404

    @flask_app.errorhandler(413)
    def handle_too_large(error):
        return render_template('error.html', status_code=413, message="Fichier trop volumineux."), 413

    # Enregistrer les blueprints
    from app.blueprints.auth import auth_bp
    from app.blueprints.wines import wines_bp
    from app.blueprints.reviews import reviews_bp
    from app.blueprints.tasting_notes import tasting_notes_bp
    from app.blueprints.settings import settings_bp
    from app.blueprints.subscription import subscription_bp, webhook

    flask_app.register_blueprint(auth_bp)
    flask_app.register_blueprint(wines_bp)
    flask_app.register_blueprint(reviews_bp)
    flask_app.register_blueprint(tasting_notes_bp)
    flask_app.register_blueprint(settings_bp)
    flask_app.register_blueprint(subscription_bp)

    # Le webhook est authentifié par sa signature
    csrf.exempt(webhook)

    return flask_app
