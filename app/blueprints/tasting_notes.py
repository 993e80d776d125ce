"""Blueprint pour les notes de dégustation."""

from datetime import date

from flask import Blueprint, abort, redirect, request, url_for
from flask_login import current_user, login_required

from app.exceptions import ValidationError
from app.models import TastingNote, Wine, db
from app.utils.decorators import pro_required


tasting_notes_bp = Blueprint('tasting_notes', __name__)


def _form_id():
    try:
        return int(request.form.get('id', ''))
    except ValueError:
        raise ValidationError("Identifiant invalide.")


@tasting_notes_bp.route('/add-tasting-note', methods=['POST'])
@login_required
@pro_required
def add_tasting_note():
    """Ajouter une note de dégustation datée du jour."""
    wine = Wine.query.filter_by(id=_form_id(), user_id=current_user.id).first_or_404()
    note = (request.form.get('note') or '').strip()
    if not note:
        raise ValidationError("Le contenu de la note est obligatoire.")

    db.session.add(TastingNote(wine=wine, note=note, date=date.today().isoformat()))
    db.session.commit()
    return redirect(url_for('wines.wine_detail', wine_id=wine.id))


@tasting_notes_bp.route('/delete-tasting-note', methods=['POST'])
@login_required
@pro_required
def delete_tasting_note():
    """Supprimer une note de dégustation."""
    tasting_note = db.session.get(TastingNote, _form_id())
    # Les notes d'un autre utilisateur sont traitées comme inexistantes
    if tasting_note is None or tasting_note.wine is None or not tasting_note.wine.is_owned_by(current_user):
        abort(404)

    wine_id = tasting_note.wine_id
    db.session.delete(tasting_note)
    db.session.commit()
    return redirect(url_for('wines.wine_detail', wine_id=wine_id))
