"""
File upload validation utilities.

Provides secure image upload handling with:
- Extension validation
- Content validation (magic number checking)
- Size limits
- Protection against double extension attacks
"""

from __future__ import annotations
from typing import Tuple, Optional
from PIL import Image
from io import BytesIO
import os

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}

MAX_FILE_SIZE = 5 * 1024 * 1024

_DANGEROUS_EXTENSIONS = {
    'php', 'phtml', 'exe', 'sh', 'bat', 'cmd', 'com',
    'js', 'py', 'rb', 'pl', 'cgi', 'asp', 'aspx', 'jsp'
}


def allowed_file(filename: str) -> bool:
    """
    Check if filename has an allowed extension and no dangerous double extensions.

    Examples:
        >>> allowed_file('bud.jpg')
        True
        >>> allowed_file('bud.php.jpg')
        False
        >>> allowed_file('../../../etc/passwd')
        False
    """
    if not filename or '.' not in filename:
        return False

    if '..' in filename or '/' in filename or '\\' in filename:
        return False

    ext = filename.rsplit('.', 1)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        return False

    parts = filename.lower().split('.')
    if len(parts) > 2 and parts[-2] in _DANGEROUS_EXTENSIONS:
        return False

    return True


def validate_image_content(file_bytes: bytes) -> bool:
    """Check the bytes actually decode as an image (spoofed extensions fail here)."""
    try:
        img = Image.open(BytesIO(file_bytes))
        img.verify()
        return True
    except Exception:
        return False


def validate_upload_file(
    file,
    max_size: int = MAX_FILE_SIZE
) -> Tuple[bool, Optional[str], Optional[bytes]]:
    """
    Comprehensive file upload validation.

    Args:
        file: FileStorage object from Flask request.files
        max_size: Maximum allowed file size in bytes (default: 5MB)

    Returns:
        (is_valid, error_message, file_bytes)
        - (False, None, None) when no file was provided (not an error)
        - (False, message, None) when the file was rejected
        - (True, None, bytes) when the file is a usable image
    """
    if not file or not file.filename:
        return False, None, None

    if not allowed_file(file.filename):
        return False, "Invalid file type. Only images (PNG, JPG, GIF, WebP) are allowed.", None

    file.seek(0, os.SEEK_END)
    file_length = file.tell()
    if file_length > max_size:
        max_mb = max_size / (1024 * 1024)
        return False, f"Image must be less than {max_mb:.0f}MB.", None

    file.seek(0)
    file_bytes = file.read()

    if not validate_image_content(file_bytes):
        return False, "Invalid image file. Please upload a valid image.", None

    return True, None, file_bytes
