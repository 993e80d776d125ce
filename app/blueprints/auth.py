"""Blueprint pour l'authentification."""

from collections import defaultdict
from time import time

from flask import (
    Blueprint,
    render_template,
    request,
    redirect,
    url_for,
    flash,
    current_app,
    session,
)
from flask_login import login_user, logout_user, current_user

from app.models import TIER_PRO, User, db
from app.utils.formatters import resolve_next


auth_bp = Blueprint('auth', __name__)

_login_attempts = defaultdict(list)
MAX_ATTEMPTS = 5
WINDOW_SECONDS = 900
MIN_PASSWORD_LENGTH = 8


def _client_ip():
    # X-Forwarded-For n'est pris en compte que via ProxyFix (TRUSTED_PROXY_COUNT)
    return request.remote_addr or 'unknown'


@auth_bp.route('/signup', methods=['GET', 'POST'])
def signup():
    """Création d'un compte."""
    tier = (request.values.get('tier') or '').strip()

    if request.method == 'POST':
        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password') or ''

        errors = []
        if not email:
            errors.append("L'adresse e-mail est obligatoire.")
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères.")
        if email and User.query.filter_by(email=email).first():
            errors.append("Un compte existe déjà avec cette adresse e-mail.")

        if errors:
            for error in errors:
                flash(error)
            return render_template('signup.html', tier=tier, email=email), 400

        user = User(email=email)
        user.set_password(password, method=current_app.config['PASSWORD_HASH_METHOD'])
        db.session.add(user)
        db.session.commit()
        current_app.logger.info("Nouveau compte créé: %s", user.id)

        if tier == TIER_PRO:
            login_user(user)
            session.permanent = True
            return redirect(url_for('subscription.create_checkout_session'))

        flash("Compte créé. Vous pouvez maintenant vous connecter.")
        return redirect(url_for('auth.login'))

    return render_template('signup.html', tier=tier, email='')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Page de connexion."""
    next_url = request.args.get('next')

    if request.method == 'POST':
        client_ip = _client_ip()
        now = time()
        attempts = _login_attempts[client_ip]
        _login_attempts[client_ip] = [ts for ts in attempts if now - ts < WINDOW_SECONDS]

        if len(_login_attempts[client_ip]) >= MAX_ATTEMPTS:
            current_app.logger.warning("Trop de tentatives de connexion pour %s", client_ip)
            flash("Trop de tentatives. Réessayez dans quelques minutes.")
            return render_template('login.html', next_url=next_url), 429

        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password') or ''
        next_url = request.form.get('next') or next_url
        user = User.query.filter_by(email=email).first()

        if user and user.check_password(password):
            hash_method = current_app.config['PASSWORD_HASH_METHOD']
            if user.needs_rehash(hash_method):
                user.set_password(password, method=hash_method)
                db.session.commit()
                current_app.logger.info("Mot de passe de l'utilisateur %s rehaché", user.id)

            login_user(user)
            session.permanent = True
            _login_attempts.pop(client_ip, None)
            return redirect(resolve_next(next_url, 'wines.index'))

        flash("Identifiants incorrects.")
        _login_attempts[client_ip].append(now)
        return render_template('login.html', next_url=next_url), 401

    if current_user.is_authenticated:
        return redirect(url_for('wines.index'))

    return render_template('login.html', next_url=next_url)


@auth_bp.route('/logout')
def logout():
    """Déconnexion de l'utilisateur."""
    logout_user()
    session.clear()
    return redirect(url_for('wines.index'))
