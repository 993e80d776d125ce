"""Blueprint pour la gestion des vins de l'utilisateur."""

import math

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required

from app.exceptions import ValidationError, WineLimitReachedError
from app.models import DEFAULT_BOTTLE_SIZE, Wine, db
from app.utils.wine_query import WineListParams, fetch_wine_page, filter_options
from services.image_storage import InvalidImageError


wines_bp = Blueprint('wines', __name__)

TEXT_FIELDS = (
    'name',
    'producer',
    'grape',
    'country',
    'region',
    'location',
    'rating',
    'drinking_window',
    'notes',
    'type',
    'category',
    'sub_category',
)


def _image_storage():
    return current_app.extensions['image_storage']


def _get_owned_wine_or_404(wine_id):
    """Retourne le vin de l'utilisateur connecté, 404 s'il appartient à un autre."""
    return Wine.query.filter_by(id=wine_id, user_id=current_user.id).first_or_404()


def _form_wine_id():
    try:
        return int(request.form.get('id', ''))
    except ValueError:
        raise ValidationError("Identifiant de vin invalide.")


def _wine_count(user):
    return Wine.query.filter_by(user_id=user.id).count()


def _limit_reached(user):
    return user.is_free_tier and _wine_count(user) >= current_app.config['FREE_TIER_WINE_LIMIT']


def _parse_number(raw_value, cast, label, errors, minimum=None):
    value = (raw_value or '').strip()
    if cast is float:
        value = value.replace(',', '.')
    if not value:
        return cast(0)
    try:
        number = cast(value)
    except ValueError:
        errors.append(f"{label} doit être un nombre.")
        return cast(0)
    if cast is float and not math.isfinite(number):
        errors.append(f"{label} doit être un nombre.")
        return cast(0)
    if minimum is not None and number < minimum:
        errors.append(f"{label} ne peut pas être négatif.")
        return cast(0)
    return number


def _extract_wine_values(form):
    """Lit et valide les champs du formulaire de vin.

    Returns:
        Tuple (valeurs, erreurs)
    """
    errors: list[str] = []
    values = {name: (form.get(name) or '').strip() or None for name in TEXT_FIELDS}

    if not values['name']:
        errors.append("Le nom du vin est obligatoire.")

    vintage_raw = (form.get('vintage') or '').strip()
    vintage = _parse_number(vintage_raw, int, "Le millésime", errors, minimum=0)
    is_non_vintage = form.get('is_non_vintage') == 'on' or vintage == 0
    values['vintage'] = 0 if is_non_vintage else vintage
    values['is_non_vintage'] = is_non_vintage

    values['quantity'] = _parse_number(form.get('quantity'), int, "La quantité", errors, minimum=0)
    values['price'] = _parse_number(form.get('price'), float, "Le prix", errors, minimum=0)
    values['abv'] = _parse_number(form.get('abv'), float, "Le degré d'alcool", errors, minimum=0)
    values['bottle_size'] = (form.get('bottle_size') or '').strip() or DEFAULT_BOTTLE_SIZE

    return values, errors


def _uploaded_image():
    """Retourne (contenu, nom) du fichier image envoyé, (None, None) s'il n'y en a pas."""
    upload = request.files.get('image')
    if upload is None or not upload.filename:
        return None, None
    data = upload.read()
    return (data, upload.filename) if data else (None, None)


@wines_bp.route('/')
def index():
    """Liste des vins, ou page d'accueil pour les visiteurs."""
    if not current_user.is_authenticated:
        return render_template('landing.html')

    params = WineListParams.from_args(request.args)
    page = fetch_wine_page(current_user, params, current_app.config['WINES_PER_PAGE'])
    options = filter_options(current_user.id) if current_user.is_pro else None

    return render_template(
        'list.html',
        wine_page=page,
        wines=page.wines,
        params=params,
        options=options,
        wine_count=_wine_count(current_user),
        wine_limit=current_app.config['FREE_TIER_WINE_LIMIT'],
    )


@wines_bp.route('/add', methods=['GET', 'POST'])
@login_required
def add_wine():
    """Ajouter un vin à la cave."""
    if _limit_reached(current_user):
        if request.method == 'POST':
            current_app.logger.info("Limite de l'offre gratuite atteinte pour l'utilisateur %s", current_user.id)
            raise WineLimitReachedError(
                "Limite de l'offre gratuite atteinte. Passez à l'offre Connoisseur pour ajouter d'autres vins."
            )
        return render_template(
            'limit_reached.html',
            wine_limit=current_app.config['FREE_TIER_WINE_LIMIT'],
        )

    if request.method == 'POST':
        values, errors = _extract_wine_values(request.form)

        image_url = None
        image_data, image_name = _uploaded_image()
        if image_data is not None and not errors:
            try:
                image_url = _image_storage().store_wine_image(image_data, current_user.id, filename=image_name)
            except InvalidImageError:
                errors.append("Le fichier envoyé n'est pas une image valide.")

        if errors:
            for error in errors:
                flash(error)
            return render_template('wine_form.html', wine=None, form_data=request.form), 400

        wine = Wine(user_id=current_user.id, image_url=image_url, **values)
        db.session.add(wine)
        db.session.commit()
        current_app.logger.info("Vin %s ajouté par l'utilisateur %s", wine.id, current_user.id)
        flash('Vin ajouté avec succès.')
        return redirect(url_for('wines.index'))

    return render_template('wine_form.html', wine=None, form_data={})


@wines_bp.route('/details/<int:wine_id>')
@login_required
def wine_detail(wine_id):
    """Afficher un vin avec ses critiques et notes de dégustation."""
    wine = _get_owned_wine_or_404(wine_id)
    return render_template('details.html', wine=wine)


@wines_bp.route('/edit/<int:wine_id>', methods=['GET', 'POST'])
@login_required
def edit_wine(wine_id):
    """Modifier un vin existant."""
    wine = _get_owned_wine_or_404(wine_id)

    if request.method == 'POST':
        values, errors = _extract_wine_values(request.form)

        new_image_url = None
        image_data, image_name = _uploaded_image()
        if image_data is not None and not errors:
            try:
                new_image_url = _image_storage().store_wine_image(image_data, current_user.id, filename=image_name)
            except InvalidImageError:
                errors.append("Le fichier envoyé n'est pas une image valide.")

        if errors:
            for error in errors:
                flash(error)
            return render_template('wine_form.html', wine=wine, form_data=request.form), 400

        for name, value in values.items():
            setattr(wine, name, value)

        previous_url = wine.image_url
        if new_image_url:
            wine.image_url = new_image_url

        db.session.commit()
        if new_image_url:
            _image_storage().delete_image(previous_url)
        flash('Vin modifié avec succès.')
        return redirect(url_for('wines.wine_detail', wine_id=wine.id))

    return render_template('wine_form.html', wine=wine, form_data={})


@wines_bp.route('/update-quantity', methods=['POST'])
@login_required
def update_quantity():
    """Ajoute ou retire une bouteille, sans descendre sous zéro."""
    wine = _get_owned_wine_or_404(_form_wine_id())
    action = request.form.get('action')

    if action == 'increment':
        wine.quantity = (wine.quantity or 0) + 1
    elif action == 'decrement':
        wine.quantity = max((wine.quantity or 0) - 1, 0)
    else:
        raise ValidationError("Action inconnue.")

    db.session.commit()
    return redirect(url_for('wines.wine_detail', wine_id=wine.id))


@wines_bp.route('/delete', methods=['POST'])
@login_required
def delete_wine():
    """Supprimer un vin, ses critiques, ses notes et sa photo."""
    wine = _get_owned_wine_or_404(_form_wine_id())
    wine_id = wine.id
    image_url = wine.image_url

    db.session.delete(wine)
    db.session.commit()
    _image_storage().delete_image(image_url)

    current_app.logger.info("Vin %s supprimé par l'utilisateur %s", wine_id, current_user.id)
    flash('Vin supprimé.')
    return redirect(url_for('wines.index'))


@wines_bp.route('/health')
def health():
    """Sonde de disponibilité."""
    return 'OK', 200, {'Content-Type': 'text/plain; charset=utf-8'}
