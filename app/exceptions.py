"""Exceptions personnalisées pour l'application."""


class WineCellarException(Exception):
    """Exception de base pour l'application Wine Cellar."""

    status_code = 500


class ValidationError(WineCellarException):
    """Exception levée lors d'une erreur de validation."""

    status_code = 400


class SubscriptionRequiredError(WineCellarException):
    """Exception levée quand une fonctionnalité est réservée à l'offre Connoisseur."""

    status_code = 403


class WineLimitReachedError(SubscriptionRequiredError):
    """Exception levée quand l'offre gratuite a atteint son nombre maximal de vins."""


class OwnershipError(WineCellarException):
    """Exception levée quand un enregistrement appartient à un autre utilisateur."""

    status_code = 403


class BillingError(WineCellarException):
    """Exception levée quand l'appel au fournisseur de paiement échoue."""

    status_code = 502


class WebhookSignatureError(WineCellarException):
    """Exception levée quand la signature d'un webhook est invalide."""

    status_code = 400
