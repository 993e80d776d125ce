"""Tests for the bottle photo storage."""
import pytest
from PIL import Image
from botocore.exceptions import ClientError

from services.image_storage import (
    ImageStorage,
    InvalidImageError,
    content_type_for_filename,
    detect_image_type,
    extension_for_content_type,
)


class FakeS3Client:
    def __init__(self, fail_put=False):
        self.fail_put = fail_put
        self.objects = {}
        self.deleted = []

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_put:
            raise ClientError({'Error': {'Code': '500', 'Message': 'boom'}}, 'PutObject')
        self.objects[Key] = (Bucket, Body, ContentType)

    def delete_object(self, Bucket, Key):
        self.deleted.append((Bucket, Key))


def test_detect_image_type(png_bytes):
    assert detect_image_type(png_bytes) == 'image/png'


def test_detect_image_type_rejects_garbage():
    with pytest.raises(InvalidImageError):
        detect_image_type(b'%PDF-1.4 not a picture')
    with pytest.raises(InvalidImageError):
        detect_image_type(b'')


def test_extension_for_content_type():
    assert extension_for_content_type('image/png') == '.png'
    assert extension_for_content_type('image/webp') == '.webp'
    assert extension_for_content_type('image/jpeg') == '.jpg'
    assert extension_for_content_type(None) == '.jpg'


def test_content_type_for_filename():
    assert content_type_for_filename('label.PNG') == 'image/png'
    assert content_type_for_filename('bottle.webp') == 'image/webp'
    assert content_type_for_filename('scan.jpeg') == 'image/jpeg'
    assert content_type_for_filename('photo.heic') == 'image/jpeg'
    assert content_type_for_filename(None) == 'image/jpeg'


def test_detect_image_type_falls_back_to_filename(png_bytes, monkeypatch):
    monkeypatch.delitem(Image.MIME, 'PNG')
    assert detect_image_type(png_bytes, 'label.png') == 'image/png'
    assert detect_image_type(png_bytes) == 'image/jpeg'


def test_unconfigured_storage_returns_data_url(png_bytes):
    storage = ImageStorage()
    assert not storage.is_configured
    url = storage.store_wine_image(png_bytes, user_id=3)
    assert url.startswith('data:image/png;base64,')
    assert storage.delete_image(url) is False


def test_upload_to_bucket_with_public_url(png_bytes):
    client = FakeS3Client()
    storage = ImageStorage(bucket='cellar', public_url='https://img.example.com/', client=client)

    url = storage.store_wine_image(png_bytes, user_id=3)

    assert url.startswith('https://img.example.com/wines/3/')
    assert url.endswith('.png')
    key = url[len('https://img.example.com/'):]
    bucket, body, content_type = client.objects[key]
    assert bucket == 'cellar'
    assert body == png_bytes
    assert content_type == 'image/png'


def test_default_public_url_uses_r2_dev(png_bytes):
    storage = ImageStorage(bucket='cellar', client=FakeS3Client())
    url = storage.store_wine_image(png_bytes, user_id=1)
    assert url.startswith('https://cellar.r2.dev/wines/1/')


def test_failed_upload_falls_back_to_data_url(png_bytes):
    storage = ImageStorage(bucket='cellar', client=FakeS3Client(fail_put=True))
    url = storage.store_wine_image(png_bytes, user_id=1)
    assert url.startswith('data:image/png;base64,')


def test_delete_only_own_objects():
    client = FakeS3Client()
    storage = ImageStorage(bucket='cellar', public_url='https://img.example.com', client=client)

    assert storage.delete_image('https://img.example.com/wines/1/a.png') is True
    assert storage.delete_image('https://elsewhere.example.com/wines/1/a.png') is False
    assert storage.delete_image('data:image/png;base64,AAAA') is False
    assert client.deleted == [('cellar', 'wines/1/a.png')]
