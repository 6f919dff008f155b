# app/core/storage_utils.py
import uuid

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin

settings = get_settings()

BUCKET = settings.STORAGE_BUCKET


def _bucket():
    # Client is created lazily so importing this module never needs the service key.
    return supabase_admin().storage.from_(BUCKET)


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return the public URL.

    Existing objects at the same path are overwritten ('upsert').

    Args:
        path: Full object path inside the bucket.
              Example: "products/<uuid>/hero.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.
    """
    _bucket().upload(
        path,
        file_bytes,
        {"upsert": "true", "content-type": content_type},
    )
    return _bucket().get_public_url(path)


def delete_from_storage(path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path
    (relative to the bucket).
    """
    _bucket().remove([path])


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/product-images/products/p/hero.png
        -> 'products/p/hero.png'
    """
    marker = f"/storage/v1/object/public/{BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def delete_public_url(url: str) -> None:
    """
    Delete a file by its public URL.
    No-op if the URL does not belong to this bucket.
    """
    path = extract_path_from_public_url(url)
    if path:
        delete_from_storage(path)


def generate_filename(ext: str) -> str:
    """Random '<uuid4>.<ext>' filename."""
    return f"{uuid.uuid4()}.{ext}"
