import logging
import os
from datetime import timedelta

logger = logging.getLogger(__name__)

DEV_SESSION_SECRET = 'super-secret-key'


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    # Vide par défaut, donc ni 'dev' ni 'production'
    APP_ENV = os.environ.get('APP_ENV', '')
    SECRET_KEY = os.environ.get('SESSION_SECRET')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///wines.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Cookie de session signé
    SESSION_COOKIE_NAME = 'session-name'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = APP_ENV == 'production'
    REMEMBER_COOKIE_SECURE = APP_ENV == 'production'
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    # Nombre de proxys de confiance devant l'application (X-Forwarded-For)
    TRUSTED_PROXY_COUNT = _env_int('TRUSTED_PROXY_COUNT', 0)

    # Téléversement des images (10 Mo)
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # Offres
    FREE_TIER_WINE_LIMIT = _env_int('FREE_TIER_WINE_LIMIT', 10)
    WINES_PER_PAGE = _env_int('WINES_PER_PAGE', 10)
    PASSWORD_HASH_METHOD = os.environ.get('PASSWORD_HASH_METHOD', 'scrypt')

    # Stripe
    DOMAIN = os.environ.get('DOMAIN', 'localhost:8080')
    STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY')
    STRIPE_PRICE_ID = os.environ.get('STRIPE_PRICE_ID')
    STRIPE_WEBHOOK_SECRET = os.environ.get('STRIPE_WEBHOOK_SECRET')
    STRIPE_API_BASE = os.environ.get('STRIPE_API_BASE', 'https://api.stripe.com')
    STRIPE_WEBHOOK_TOLERANCE = _env_int('STRIPE_WEBHOOK_TOLERANCE', 300)

    # Stockage des images (Cloudflare R2, compatible S3)
    R2_ACCOUNT_ID = os.environ.get('R2_ACCOUNT_ID')
    R2_ACCESS_KEY_ID = os.environ.get('R2_ACCESS_KEY_ID')
    R2_SECRET_ACCESS_KEY = os.environ.get('R2_SECRET_ACCESS_KEY')
    R2_BUCKET_NAME = os.environ.get('R2_BUCKET_NAME')
    R2_PUBLIC_URL = os.environ.get('R2_PUBLIC_URL')


    @staticmethod
    def resolve_secret_key(app_env, secret):
        """
        Retourne la clé de signature des sessions :
        - SESSION_SECRET si elle est définie
        - une clé de développement en dehors de la production
        - lève RuntimeError en production si elle est absente
        """
        if secret:
            return secret
        if app_env == 'production':
            raise RuntimeError("SESSION_SECRET environment variable is required in production")
        logger.warning("SESSION_SECRET non défini, utilisation de la clé de développement")
        return DEV_SESSION_SECRET

    @staticmethod
    def normalized_domain(domain):
        """Préfixe le domaine public par https:// s'il n'a pas de schéma."""
        domain = (domain or '').strip().rstrip('/')
        if not domain.startswith('http'):
            domain = 'https://' + domain
        return domain
