"""
Answer image storage (Supabase Storage bucket).
"""
import random
import string
import time

from markwise.config import ANSWER_IMAGES_BUCKET, SIGNED_URL_EXPIRY
from markwise.errors import UpstreamError
from markwise.services.clients import get_supabase


def _random_suffix(length=10):
    chars = string.ascii_lowercase + string.digits
    return ''.join(random.choices(chars, k=length))


def build_image_path(user_id: str, filename: str, default_ext: str = 'jpg') -> str:
    """Storage path for an upload: {user_id}/{epoch_ms}-{random}.{ext}"""
    ext = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else default_ext
    return f"{user_id}/{int(time.time() * 1000)}-{_random_suffix()}.{ext}"


def upload_answer_image(user_id: str, filename: str, data: bytes, content_type: str,
                        default_ext: str = 'jpg') -> str:
    """Upload image bytes and return their storage path."""
    path = build_image_path(user_id, filename, default_ext)
    db = get_supabase()
    db.storage.from_(ANSWER_IMAGES_BUCKET).upload(
        path, data, {"content-type": content_type}
    )
    return path


def create_signed_url(path: str, expires_in: int = SIGNED_URL_EXPIRY) -> str:
    """Create a time-limited read URL for a stored answer image."""
    db = get_supabase()
    result = db.storage.from_(ANSWER_IMAGES_BUCKET).create_signed_url(path, expires_in)
    url = None
    if isinstance(result, dict):
        url = result.get('signedURL') or result.get('signedUrl') or result.get('signed_url')
    if not url:
        raise UpstreamError(f"Could not create signed URL for {path}")
    return url
