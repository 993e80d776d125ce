"""Tests for the wine CRUD routes."""
import io

from app.models import Review, TastingNote, Wine, db


class TestIndex:
    def test_list_shows_only_own_wines(self, client, free_user, other_user, login, make_wine):
        make_wine(free_user, name='Mon Pomerol')
        make_wine(other_user, name='Le Vin Du Voisin')
        login(free_user)

        response = client.get('/')
        assert response.status_code == 200
        assert b'Mon Pomerol' in response.data
        assert b'Le Vin Du Voisin' not in response.data

    def test_authenticated_pages_are_not_cached(self, client, free_user, login):
        login(free_user)
        response = client.get('/')
        assert 'no-store' in response.headers['Cache-Control']

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.data == b'OK'


class TestAddWine:
    def test_add_form_loads(self, client, free_user, login):
        login(free_user)
        response = client.get('/add')
        assert response.status_code == 200
        assert b'name="vintage"' in response.data

    def test_add_wine(self, client, free_user, login):
        login(free_user)
        response = client.post('/add', data={
            'name': 'Barolo Riserva',
            'producer': 'Giacomo',
            'vintage': '2016',
            'quantity': '6',
            'price': '45,50',
            'abv': '14.5',
            'country': 'Italy',
            'region': 'Piedmont',
            'category': 'Wine',
            'sub_category': 'Red',
        })
        assert response.status_code == 302
        assert response.headers['Location'] == '/'

        wine = Wine.query.filter_by(name='Barolo Riserva').one()
        assert wine.user_id == free_user.id
        assert wine.vintage == 2016
        assert wine.is_non_vintage is False
        assert wine.quantity == 6
        assert wine.price == 45.5
        assert wine.abv == 14.5
        assert wine.bottle_size == '75cl'

    def test_blank_vintage_marks_non_vintage(self, client, free_user, login):
        login(free_user)
        client.post('/add', data={'name': 'Brut Reserve', 'vintage': ''})
        wine = Wine.query.filter_by(name='Brut Reserve').one()
        assert wine.is_non_vintage is True
        assert wine.vintage == 0
        assert wine.vintage_label == 'NV'

    def test_non_vintage_checkbox_clears_vintage(self, client, free_user, login):
        login(free_user)
        client.post('/add', data={'name': 'Tawny', 'vintage': '2001', 'is_non_vintage': 'on'})
        wine = Wine.query.filter_by(name='Tawny').one()
        assert wine.is_non_vintage is True
        assert wine.vintage == 0

    def test_name_is_required(self, client, free_user, login):
        login(free_user)
        response = client.post('/add', data={'name': '  ', 'vintage': '2019'})
        assert response.status_code == 400
        assert Wine.query.count() == 0

    def test_invalid_quantity_is_rejected(self, client, free_user, login):
        login(free_user)
        response = client.post('/add', data={'name': 'Chablis', 'quantity': '-2'})
        assert response.status_code == 400
        assert Wine.query.count() == 0

    def test_nan_price_is_rejected(self, client, free_user, login):
        login(free_user)
        response = client.post('/add', data={'name': 'Chablis', 'price': 'nan'})
        assert response.status_code == 400
        assert 'Le prix doit être un nombre.' in response.get_data(as_text=True)
        assert Wine.query.count() == 0

    def test_infinite_abv_is_rejected(self, client, free_user, login):
        login(free_user)
        response = client.post('/add', data={'name': 'Chablis', 'abv': 'inf'})
        assert response.status_code == 400
        assert Wine.query.count() == 0

    def test_non_finite_price_is_rejected_on_edit(self, client, free_user, login, make_wine):
        wine = make_wine(free_user, name='Chablis', price=18.0)
        login(free_user)
        response = client.post(f'/edit/{wine.id}', data={'name': 'Chablis', 'price': '-inf'})
        assert response.status_code == 400
        assert db.session.get(Wine, wine.id).price == 18.0

    def test_image_upload_falls_back_to_data_url(self, client, free_user, login, png_bytes):
        login(free_user)
        response = client.post('/add', data={
            'name': 'Photo Wine',
            'image': (io.BytesIO(png_bytes), 'label.png'),
        }, content_type='multipart/form-data')
        assert response.status_code == 302

        wine = Wine.query.filter_by(name='Photo Wine').one()
        assert wine.image_url.startswith('data:image/png;base64,')

    def test_invalid_image_is_rejected(self, client, free_user, login):
        login(free_user)
        response = client.post('/add', data={
            'name': 'Broken Photo',
            'image': (io.BytesIO(b'not an image'), 'label.png'),
        }, content_type='multipart/form-data')
        assert response.status_code == 400
        assert Wine.query.count() == 0


class TestFreeTierLimit:
    def test_limit_page_on_get(self, client, free_user, login, make_wine):
        for index in range(10):
            make_wine(free_user, name=f'Wine {index}')
        login(free_user)

        response = client.get('/add')
        assert response.status_code == 200
        assert b'Passer Connoisseur' in response.data
        assert b'name="vintage"' not in response.data

    def test_limit_rejects_post(self, client, free_user, login, make_wine):
        for index in range(10):
            make_wine(free_user, name=f'Wine {index}')
        login(free_user)

        response = client.post('/add', data={'name': 'One Too Many'})
        assert response.status_code == 403
        assert Wine.query.filter_by(user_id=free_user.id).count() == 10

    def test_pro_has_no_limit(self, client, pro_user, login, make_wine):
        for index in range(10):
            make_wine(pro_user, name=f'Wine {index}')
        login(pro_user)

        response = client.post('/add', data={'name': 'Eleventh'})
        assert response.status_code == 302
        assert Wine.query.filter_by(user_id=pro_user.id).count() == 11


class TestDetailsAndEdit:
    def test_details(self, client, free_user, login, make_wine):
        wine = make_wine(free_user, name='Sancerre', producer='Vacheron')
        login(free_user)
        response = client.get(f'/details/{wine.id}')
        assert response.status_code == 200
        assert b'Vacheron' in response.data

    def test_details_of_foreign_wine_is_404(self, client, free_user, other_user, login, make_wine):
        wine = make_wine(other_user, name='Secret Bottle')
        login(free_user)
        response = client.get(f'/details/{wine.id}')
        assert response.status_code == 404

    def test_edit_wine(self, client, free_user, login, make_wine):
        wine = make_wine(free_user, name='Old Name', vintage=2010, quantity=2)
        login(free_user)

        response = client.post(f'/edit/{wine.id}', data={
            'name': 'New Name',
            'vintage': '2012',
            'quantity': '3',
            'bottle_size': '150cl',
        })
        assert response.status_code == 302
        assert response.headers['Location'] == f'/details/{wine.id}'

        wine = db.session.get(Wine, wine.id)
        assert wine.name == 'New Name'
        assert wine.vintage == 2012
        assert wine.quantity == 3
        assert wine.bottle_size == '150cl'

    def test_edit_foreign_wine_is_404(self, client, free_user, other_user, login, make_wine):
        wine = make_wine(other_user, name='Not Yours')
        login(free_user)
        response = client.post(f'/edit/{wine.id}', data={'name': 'Hijacked'})
        assert response.status_code == 404
        assert db.session.get(Wine, wine.id).name == 'Not Yours'

    def test_edit_replaces_image(self, client, free_user, login, make_wine, png_bytes, app):
        deleted = []
        storage = app.extensions['image_storage']
        storage.delete_image = lambda url: deleted.append(url) or True

        wine = make_wine(free_user, name='Relabel', image_url='https://img.example.com/wines/1/old.jpg')
        login(free_user)
        client.post(f'/edit/{wine.id}', data={
            'name': 'Relabel',
            'image': (io.BytesIO(png_bytes), 'new.png'),
        }, content_type='multipart/form-data')

        wine = db.session.get(Wine, wine.id)
        assert wine.image_url.startswith('data:image/png;base64,')
        assert deleted == ['https://img.example.com/wines/1/old.jpg']


class TestQuantityAndDelete:
    def test_increment_and_decrement(self, client, free_user, login, make_wine):
        wine = make_wine(free_user, quantity=1)
        login(free_user)

        client.post('/update-quantity', data={'id': wine.id, 'action': 'increment'})
        assert db.session.get(Wine, wine.id).quantity == 2

        client.post('/update-quantity', data={'id': wine.id, 'action': 'decrement'})
        client.post('/update-quantity', data={'id': wine.id, 'action': 'decrement'})
        response = client.post('/update-quantity', data={'id': wine.id, 'action': 'decrement'})
        assert response.status_code == 302
        assert db.session.get(Wine, wine.id).quantity == 0

    def test_unknown_action_is_rejected(self, client, free_user, login, make_wine):
        wine = make_wine(free_user, quantity=1)
        login(free_user)
        response = client.post('/update-quantity', data={'id': wine.id, 'action': 'double'})
        assert response.status_code == 400

    def test_update_foreign_wine_is_404(self, client, free_user, other_user, login, make_wine):
        wine = make_wine(other_user, quantity=4)
        login(free_user)
        response = client.post('/update-quantity', data={'id': wine.id, 'action': 'decrement'})
        assert response.status_code == 404
        assert db.session.get(Wine, wine.id).quantity == 4

    def test_delete_removes_children(self, client, pro_user, login, make_wine):
        wine = make_wine(pro_user)
        db.session.add(Review(wine=wine, reviewer='Critic', content='Great'))
        db.session.add(TastingNote(wine=wine, note='Cherry', date='2024-01-01'))
        db.session.commit()
        wine_id = wine.id
        login(pro_user)

        response = client.post('/delete', data={'id': wine_id})
        assert response.status_code == 302
        assert response.headers['Location'] == '/'
        assert db.session.get(Wine, wine_id) is None
        assert Review.query.count() == 0
        assert TastingNote.query.count() == 0

    def test_delete_foreign_wine_is_404(self, client, free_user, other_user, login, make_wine):
        wine = make_wine(other_user)
        login(free_user)
        response = client.post('/delete', data={'id': wine.id})
        assert response.status_code == 404
        assert db.session.get(Wine, wine.id) is not None

    def test_delete_with_invalid_id(self, client, free_user, login):
        login(free_user)
        response = client.post('/delete', data={'id': 'abc'})
        assert response.status_code == 400
