"""Blueprint pour les paramètres du compte."""

import csv
from io import StringIO

from flask import (
    Blueprint,
    Response,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from flask_login import current_user, login_required, logout_user

from app.field_config import CSV_EXPORT_HEADER, CURRENCIES
from app.models import SUBSCRIPTION_TIERS, Wine, db


settings_bp = Blueprint('settings', __name__)


@settings_bp.route('/settings', methods=['GET', 'POST'])
@login_required
def settings():
    """Affiche le compte et l'abonnement, met à jour la devise."""
    if request.method == 'POST':
        currency = (request.form.get('currency') or '').strip().upper()
        if currency:
            if currency not in CURRENCIES:
                flash("Devise non prise en charge.")
                return render_template('settings.html'), 400
            current_user.currency = currency

        # Bascule d'offre réservée au développement local
        debug_tier = (request.form.get('debug_tier') or '').strip()
        if debug_tier and current_app.config.get('APP_ENV') == 'dev':
            if debug_tier in SUBSCRIPTION_TIERS:
                current_user.subscription_tier = debug_tier
                current_app.logger.info(
                    "Offre de l'utilisateur %s forcée à %s", current_user.id, debug_tier
                )

        db.session.commit()
        flash("Paramètres enregistrés.")
        return redirect(url_for('settings.settings'))

    return render_template(
        'settings.html',
        checkout_success=request.args.get('success') == 'true',
        checkout_canceled=request.args.get('canceled') == 'true',
        show_debug_tier=current_app.config.get('APP_ENV') == 'dev',
    )


@settings_bp.route('/export')
@login_required
def export_wines():
    """Exporte la cave de l'utilisateur en CSV."""
    wines = (
        Wine.query.filter_by(user_id=current_user.id)
        .order_by(Wine.name.asc(), Wine.id.asc())
        .all()
    )

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_EXPORT_HEADER)
    for wine in wines:
        writer.writerow([
            wine.name,
            wine.producer or '',
            wine.vintage_label,
            wine.grape or '',
            wine.country or '',
            wine.region or '',
            wine.quantity,
            f"{wine.price or 0:.2f}",
            wine.location or '',
            wine.rating or '',
            wine.notes or '',
        ])

    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=wines.csv"},
    )


@settings_bp.route('/delete-account', methods=['POST'])
@login_required
def delete_account():
    """Supprime le compte, ses vins, critiques et notes, puis déconnecte."""
    user = current_user._get_current_object()
    user_id = user.id
    image_urls = [wine.image_url for wine in user.wines if wine.image_url]

    try:
        db.session.delete(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Échec de la suppression du compte %s", user_id)
        raise

    storage = current_app.extensions['image_storage']
    for url in image_urls:
        storage.delete_image(url)

    logout_user()
    session.clear()
    current_app.logger.info("Compte %s supprimé", user_id)
    return redirect(url_for('wines.index'))
