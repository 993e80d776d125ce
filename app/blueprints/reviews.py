"""Blueprint pour les critiques de vins."""

from datetime import date

from flask import Blueprint, abort, current_app, redirect, request, url_for
from flask_login import current_user, login_required

from app.exceptions import OwnershipError, ValidationError
from app.models import Review, Wine, db
from app.utils.decorators import pro_required
from app.utils.formatters import normalize_link


reviews_bp = Blueprint('reviews', __name__)


def _form_id():
    try:
        return int(request.form.get('id', ''))
    except ValueError:
        raise ValidationError("Identifiant invalide.")


def _review_fields():
    reviewer = (request.form.get('reviewer') or '').strip()
    content = (request.form.get('content') or '').strip()
    if not reviewer or not content:
        raise ValidationError("Le nom du critique et le contenu sont obligatoires.")
    return reviewer, content, (request.form.get('rating') or '').strip() or None


def _get_owned_review(review_id):
    """Retourne la critique si son vin appartient à l'utilisateur connecté."""
    review = db.session.get(Review, review_id)
    if review is None:
        abort(404)
    if review.wine is None:
        abort(404)
    if not review.wine.is_owned_by(current_user):
        current_app.logger.warning(
            "Accès refusé à la critique %s pour l'utilisateur %s", review_id, current_user.id
        )
        raise OwnershipError("Cette critique ne vous appartient pas.")
    return review


@reviews_bp.route('/add-review', methods=['POST'])
@login_required
@pro_required
def add_review():
    """Ajouter une critique à un vin."""
    wine = Wine.query.filter_by(id=_form_id(), user_id=current_user.id).first_or_404()
    reviewer, content, rating = _review_fields()

    review = Review(
        wine=wine,
        reviewer=reviewer,
        content=content,
        rating=rating,
        link=normalize_link(request.form.get('link')) or None,
        date=date.today().isoformat(),
    )
    db.session.add(review)
    db.session.commit()
    return redirect(url_for('wines.wine_detail', wine_id=wine.id))


@reviews_bp.route('/edit-review', methods=['POST'])
@login_required
def edit_review():
    """Modifier une critique existante."""
    review = _get_owned_review(_form_id())
    reviewer, content, rating = _review_fields()

    review.reviewer = reviewer
    review.content = content
    review.rating = rating
    review.link = normalize_link(request.form.get('link')) or None
    db.session.commit()
    return redirect(url_for('wines.wine_detail', wine_id=review.wine_id))


@reviews_bp.route('/delete-review', methods=['POST'])
@login_required
def delete_review():
    """Supprimer une critique."""
    review = _get_owned_review(_form_id())
    wine_id = review.wine_id

    db.session.delete(review)
    db.session.commit()
    return redirect(url_for('wines.wine_detail', wine_id=wine_id))
