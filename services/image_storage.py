"""Object storage for bottle photos (Cloudflare R2 through its S3 API)."""

from __future__ import annotations

import base64
import logging
import os
import uuid
from io import BytesIO
from typing import Dict, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

_CONTENT_TYPES = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


class InvalidImageError(ValueError):
    """Raised when uploaded bytes cannot be decoded as an image."""


def extension_for_content_type(content_type: Optional[str]) -> str:
    return _EXTENSIONS.get((content_type or "").lower(), ".jpg")


def content_type_for_filename(filename: Optional[str]) -> str:
    extension = os.path.splitext(filename or "")[1].lower()
    return _CONTENT_TYPES.get(extension, "image/jpeg")


def detect_image_type(data: bytes, filename: Optional[str] = None) -> str:
    """Return the MIME type of an image, raising InvalidImageError otherwise.

    Formats Pillow decodes but has no MIME type for are typed from the
    upload's file name.
    """

    if not data:
        raise InvalidImageError("Empty image")
    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InvalidImageError("Unsupported image") from exc

    content_type = Image.MIME.get(image_format or "")
    if not content_type:
        logger.info("No MIME type for image format %s, using file name %r", image_format, filename)
        content_type = content_type_for_filename(filename)
    return content_type


def to_data_url(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


class ImageStorage:
    """Upload and delete bottle photos in an S3-compatible bucket.

    When the R2 credentials are incomplete the storage reports itself as not
    configured and callers inline the photo as a data URL instead.
    """

    def __init__(
        self,
        *,
        account_id: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        bucket: Optional[str] = None,
        public_url: Optional[str] = None,
        client=None,
    ) -> None:
        self.bucket = (bucket or "").strip() or None
        self.public_url = (public_url or "").strip().rstrip("/") or None
        self.client = client

        if self.client is None and all((account_id, access_key_id, secret_access_key, self.bucket)):
            self.client = boto3.client(
                "s3",
                endpoint_url=f"https://{account_id}.r2.cloudflarestorage.com",
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name="auto",
                config=BotoConfig(signature_version="s3v4"),
            )
            logger.info("R2 storage initialized for bucket %s", self.bucket)
        elif self.client is None:
            logger.info("R2 storage not configured - image uploads will use base64 fallback")

    @classmethod
    def from_config(cls, config: Dict[str, Optional[str]]) -> "ImageStorage":
        """Instantiate the storage from a Flask app configuration mapping."""

        return cls(
            account_id=config.get("R2_ACCOUNT_ID"),
            access_key_id=config.get("R2_ACCESS_KEY_ID"),
            secret_access_key=config.get("R2_SECRET_ACCESS_KEY"),
            bucket=config.get("R2_BUCKET_NAME"),
            public_url=config.get("R2_PUBLIC_URL"),
        )

    @property
    def is_configured(self) -> bool:
        return self.client is not None and self.bucket is not None

    def object_url(self, key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{key}"
        return f"https://{self.bucket}.r2.dev/{key}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Return the object key of a URL served by this bucket, None otherwise."""

        if not url:
            return None
        if self.public_url and url.startswith(self.public_url + "/"):
            return url[len(self.public_url) + 1:] or None
        if ".r2.dev/" in url:
            return url.split(".r2.dev/", 1)[1] or None
        return None

    def upload_image(self, data: bytes, content_type: str, user_id: int) -> str:
        """Upload an image under ``wines/<user_id>/`` and return its public URL."""

        if not self.is_configured:
            raise RuntimeError("R2 storage not configured")

        key = f"wines/{user_id}/{uuid.uuid4()}{extension_for_content_type(content_type)}"
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.info("Uploaded image %s (%s bytes)", key, len(data))
        return self.object_url(key)

    def delete_image(self, url: Optional[str]) -> bool:
        """Delete the object behind ``url``. URLs of other origins are ignored."""

        if not self.is_configured:
            return False
        key = self.key_from_url(url)
        if not key:
            return False

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception("Failed to delete image %s", key)
            return False

        logger.info("Deleted image %s", key)
        return True

    def store_wine_image(self, data: bytes, user_id: int, filename: Optional[str] = None) -> str:
        """Return the URL to store on a wine for the uploaded photo.

        The photo goes to the bucket when one is configured; otherwise, or when
        the upload fails, it is inlined as a base64 data URL.
        """

        content_type = detect_image_type(data, filename)

        if self.is_configured:
            try:
                return self.upload_image(data, content_type, user_id)
            except (BotoCoreError, ClientError):
                logger.exception("Upload to R2 failed, falling back to an inline image")

        return to_data_url(data, content_type)


__all__ = [
    "ImageStorage",
    "InvalidImageError",
    "content_type_for_filename",
    "detect_image_type",
    "extension_for_content_type",
    "to_data_url",
]
