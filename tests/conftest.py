import io

import pytest
from PIL import Image

from app import create_app
from app.blueprints import auth as auth_module
from app.models import TIER_PRO, User, Wine, db
from config import Config


class TestConfig(Config):
    __test__ = False

    TESTING = True
    APP_ENV = 'test'
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    DOMAIN = 'cellar.example.com'
    STRIPE_SECRET_KEY = 'sk_test_123'
    STRIPE_PRICE_ID = 'price_123'
    STRIPE_WEBHOOK_SECRET = 'whsec_test'
    R2_ACCOUNT_ID = None
    R2_ACCESS_KEY_ID = None
    R2_SECRET_ACCESS_KEY = None
    R2_BUCKET_NAME = None
    R2_PUBLIC_URL = None


class FakeStripeClient:
    """Records the sessions requested by the subscription views."""

    def __init__(self):
        self.checkout_calls = []
        self.portal_calls = []

    def create_checkout_session(self, **kwargs):
        self.checkout_calls.append(kwargs)
        return {'id': 'cs_test_1', 'url': 'https://checkout.stripe.com/c/pay/cs_test_1'}

    def create_portal_session(self, **kwargs):
        self.portal_calls.append(kwargs)
        return {'id': 'bps_1', 'url': 'https://billing.stripe.com/p/session/bps_1'}


@pytest.fixture
def app():
    """Create and configure a test app."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def reset_login_attempts():
    auth_module._login_attempts.clear()
    yield
    auth_module._login_attempts.clear()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def stripe_client(app):
    fake = FakeStripeClient()
    app.extensions['stripe_client'] = fake
    return fake


def _create_user(email, tier='free', password='password123'):
    user = User(email=email, subscription_tier=tier)
    user.set_password(password, method=TestConfig.PASSWORD_HASH_METHOD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def free_user(app):
    """Create a free tier user."""
    return _create_user('free@example.com')


@pytest.fixture
def pro_user(app):
    """Create a Connoisseur user."""
    return _create_user('pro@example.com', tier=TIER_PRO)


@pytest.fixture
def other_user(app):
    """Create a second user owning its own wines."""
    return _create_user('other@example.com', tier=TIER_PRO)


@pytest.fixture
def login(client):
    def do_login(user, password='password123'):
        return client.post('/login', data={'email': user.email, 'password': password})

    return do_login


@pytest.fixture
def make_wine(app):
    def create(user, **values):
        values.setdefault('name', 'Château Test')
        wine = Wine(user_id=user.id, **values)
        db.session.add(wine)
        db.session.commit()
        return wine

    return create


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), color=(114, 47, 55)).save(buffer, format='PNG')
    return buffer.getvalue()
