"""Metadata extraction utilities for uploaded files."""

import hashlib
import re
from pathlib import Path
from typing import Final

import magic
from PIL import Image, UnidentifiedImageError

_CHUNK_SIZE: Final = 8192  # 8KB chunks for checksum calculation
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'

# Anything but word characters, whitespace and -~,;:[]()., plus dot runs
_UNSAFE_NAME: Final = re.compile(r'[^\w\s\-~,;:\[\]().]|\.{2,}')


def detect_mime_type(pathname: str) -> str:
    """Detect MIME type from file contents.

    Uses python-magic (libmagic) so the result reflects what the file
    actually contains rather than what its extension claims.

    Args:
        pathname: Path of the file to inspect.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type = magic.from_file(pathname, mime=True)
    return mime_type or _DEFAULT_MIME_TYPE


def calculate_checksum(pathname: str) -> str:
    """Calculate MD5 checksum of file.

    Reads file in chunks to handle large files efficiently.

    Args:
        pathname: Path of the file to checksum.

    Returns:
        Hex-encoded MD5 hash string.
    """
    md5_hash = hashlib.md5(usedforsecurity=False)

    with open(pathname, 'rb') as file_obj:
        for chunk in iter(lambda: file_obj.read(_CHUNK_SIZE), b''):
            md5_hash.update(chunk)

    return md5_hash.hexdigest()


def read_image_dimensions(pathname: str) -> dict[str, int]:
    """Read pixel dimensions of an image file.

    Args:
        pathname: Path of the file to inspect.

    Returns:
        ``{'width': ..., 'height': ...}`` for images, empty dict for
        anything Pillow cannot identify as an image.
    """
    try:
        with Image.open(pathname) as image:
            width, height = image.size
    except UnidentifiedImageError:
        return {}

    return {'width': width, 'height': height}


def split_filename(filename: str) -> tuple[str, str]:
    """Split a filename into name and extension.

    Only the last suffix counts as the extension
    (e.g., 'archive.tar.gz' -> ('archive.tar', 'gz')).

    Args:
        filename: Filename, optionally with leading directories.

    Returns:
        Tuple of name and extension without dot.
    """
    path = Path(filename)
    return path.stem, path.suffix.lstrip('.')


def sanitize_name(name: str) -> str:
    """Strip characters that are unsafe in a stored filename.

    Args:
        name: Filename without extension.

    Returns:
        Name without directories, unsafe characters or dot runs.
    """
    return Path(_UNSAFE_NAME.sub('', name)).name


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    return split_filename(filename)[1].lower()
