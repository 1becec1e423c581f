"""Local file helpers for uploaded images."""

import os
import uuid

from werkzeug.utils import secure_filename

_SIGNATURE_BYTES = 12


def get_saved_file_size(path):
    try:
        return os.path.getsize(path)
    except Exception:
        return -1


def read_signature(path):
    try:
        with open(path, 'rb') as handle:
            return handle.read(_SIGNATURE_BYTES)
    except Exception:
        return b''


def file_has_webp_signature(head):
    return len(head) >= 12 and head[:4] == b'RIFF' and head[8:12] == b'WEBP'


def file_has_png_signature(head):
    return head[:8] == b'\x89PNG\r\n\x1a\n'


def file_has_jpeg_signature(head):
    return head[:3] == b'\xff\xd8\xff'


def file_has_gif_signature(head):
    return head[:6] in (b'GIF87a', b'GIF89a')


SIGNATURE_CHECKS = {
    'image/webp': file_has_webp_signature,
    'image/png': file_has_png_signature,
    'image/jpeg': file_has_jpeg_signature,
    'image/gif': file_has_gif_signature,
}


def file_matches_mime_type(path, mime_type):
    """True when the file's magic bytes agree with the declared image type.

    Types without a known signature are accepted as declared.
    """
    check = SIGNATURE_CHECKS.get((mime_type or '').lower())
    if check is None:
        return True
    return check(read_signature(path))


def save_upload_to_temp(file_storage, upload_folder, prefix):
    """Stream a Werkzeug upload to ``upload_folder``. Returns (path, size)."""
    os.makedirs(upload_folder, exist_ok=True)
    safe_name = secure_filename(file_storage.filename or '') or 'upload'
    path = os.path.join(upload_folder, f"{prefix}_{uuid.uuid4().hex}_{safe_name}")
    try:
        file_storage.save(path)
    except Exception:
        if os.path.exists(path):
            os.remove(path)
        raise
    return path, get_saved_file_size(path)
