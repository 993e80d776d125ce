"""Décorateurs et hooks pour l'application."""

from functools import wraps

from flask import current_app, request
from flask_login import current_user

from app.database_init import apply_schema_updates
from app.exceptions import SubscriptionRequiredError
from app.models import db


def ensure_db():
    """Crée les tables de la base de données au premier démarrage.

    Utilise before_request pour la compatibilité Flask>=3 (before_first_request supprimé).
    """
    if not hasattr(current_app, "_db_initialized"):
        with current_app.app_context():
            db.create_all()
            apply_schema_updates()

        current_app._db_initialized = True


def pro_required(func):
    """Restreint l'accès aux utilisateurs de l'offre Connoisseur."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            login_manager = current_app.login_manager
            return login_manager.unauthorized()
        if not current_user.is_pro:
            current_app.logger.info(
                "Accès pro refusé à l'utilisateur %s (%s)", current_user.id, request.path
            )
            raise SubscriptionRequiredError("Cette fonctionnalité est réservée à l'offre Connoisseur.")
        return func(*args, **kwargs)

    return wrapper
