"""Tests for the user and wine models."""
from app.models import User, Wine


def test_password_hashing():
    user = User(email='a@example.com')
    user.set_password('correct horse', method='pbkdf2:sha256:1000')
    assert user.password.startswith('pbkdf2:sha256')
    assert user.check_password('correct horse')
    assert not user.check_password('wrong horse')


def test_needs_rehash():
    user = User(email='a@example.com')
    user.set_password('correct horse', method='pbkdf2:sha256:1000')
    assert user.needs_rehash('scrypt')
    assert not user.needs_rehash('pbkdf2:sha256')


def test_tier_properties():
    assert User(subscription_tier='pro').is_pro
    assert User(subscription_tier='free').is_free_tier


def test_vintage_label():
    assert Wine(name='A', vintage=2015, is_non_vintage=False).vintage_label == '2015'
    assert Wine(name='B', vintage=0, is_non_vintage=True).vintage_label == 'NV'


def test_is_owned_by(app, free_user, other_user, make_wine):
    wine = make_wine(free_user)
    assert wine.is_owned_by(free_user)
    assert not wine.is_owned_by(other_user)
