"""Fonctions de formatage et sanitisation."""

from urllib.parse import urlencode, urlparse

from flask import url_for

from app.field_config import currency_symbol


SAFE_URL_PREFIXES = ('http://', 'https://', 'mailto:', '/', 'data:')


def safe_url(value):
    """Ne laisse passer que les URLs http(s), mailto, relatives ou data.

    Args:
        value: URL à afficher dans un attribut href/src

    Returns:
        L'URL d'origine si elle est sûre, une chaîne vide sinon
    """
    value = (value or '').strip()
    if value.startswith(SAFE_URL_PREFIXES):
        return value
    return ''


def normalize_link(value):
    """Préfixe un lien saisi sans schéma par https://."""
    value = (value or '').strip()
    if value and not value.startswith(('http://', 'https://')):
        return 'https://' + value
    return value


def format_price(value, currency=None):
    """Affiche un prix avec deux décimales et le symbole de la devise."""
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    symbol = currency_symbol(currency)
    return f"{symbol}{amount:,.2f}" if symbol else f"{amount:,.2f}"


def _copy_args(args):
    items = []
    for key in args.keys():
        for value in args.getlist(key):
            items.append((key, value))
    return items


def sort_url(args, field, current_sort, current_direction):
    """URL de tri d'une colonne : inverse le sens de la colonne active.

    Args:
        args: MultiDict de la requête courante
        field: Colonne cliquée
        current_sort: Colonne de tri active
        current_direction: Sens de tri actif

    Returns:
        Query string commençant par '?', sans numéro de page
    """
    items = [(key, value) for key, value in _copy_args(args) if key not in ('sort', 'direction', 'page')]
    direction = 'desc' if field == current_sort and current_direction == 'asc' else 'asc'
    items.extend([('sort', field), ('direction', direction)])
    return '?' + urlencode(items)


def base_query_string(args):
    """Query string courante sans le paramètre de page (liens de pagination)."""
    return urlencode([(key, value) for key, value in _copy_args(args) if key != 'page'])


def resolve_next(target, default_endpoint):
    """Résout une redirection de manière sécurisée en validant l'URL.

    Args:
        target: URL demandée (paramètre ``next``)
        default_endpoint: Endpoint Flask par défaut si la redirection n'est pas valide

    Returns:
        URL de redirection sécurisée
    """
    target = (target or '').strip()

    # Validation stricte : uniquement les chemins relatifs sans '..'
    if target and target.startswith('/') and not target.startswith('//') and '..' not in target:
        try:
            parsed = urlparse(target)
            if parsed.scheme or parsed.netloc:
                return url_for(default_endpoint)
            return target
        except (ValueError, AttributeError):
            pass

    return url_for(default_endpoint)
