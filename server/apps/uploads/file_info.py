"""Default FileInfo implementation backed by a file on local disk."""

import os
from pathlib import Path
from typing import Any, Self, override

from server.apps.uploads.infrastructure.metadata import (
    calculate_checksum,
    detect_mime_type,
    get_file_extension,
    read_image_dimensions,
    sanitize_name,
    split_filename,
)
from server.apps.uploads.transport import get_staging_directory


class FileInfo:
    """Uploaded file staged on local disk.

    Name and extension come from the name the client submitted, not from
    the staging path, and may be changed before the file is stored.
    MIME type and checksum are computed on first access and cached.
    """

    def __init__(
        self,
        pathname: str | os.PathLike[str],
        name: str | None = None,
    ) -> None:
        """Initialize FileInfo.

        Args:
            pathname: Location of the file content.
            name: Submitted filename; defaults to the basename of pathname.
        """
        self._pathname = os.fspath(pathname)
        desired_name = Path(self._pathname).name if name is None else name
        self._name = ''
        self._extension = ''
        self._mimetype: str | None = None
        self._md5: str | None = None

        self.set_name(split_filename(desired_name)[0])
        self.set_extension(get_file_extension(desired_name))

    @classmethod
    def create_from_factory(cls, tmp_name: str, name: str | None = None) -> Self:
        """Build a FileInfo for a file reported by the transport.

        Args:
            tmp_name: Staging path of the file.
            name: Filename submitted by the client.

        Returns:
            New FileInfo instance.
        """
        return cls(tmp_name, name)

    @override
    def __repr__(self) -> str:
        """Debug representation."""
        return '{cls}({pathname!r}, {name!r})'.format(
            cls=type(self).__name__,
            pathname=self._pathname,
            name=self.get_name_with_extension(),
        )

    def get_pathname(self) -> str:
        return self._pathname

    def set_pathname(self, pathname: str) -> Self:
        self._pathname = pathname
        return self

    def get_name(self) -> str:
        return self._name

    def set_name(self, name: str) -> Self:
        """Set the filename without extension.

        Directories, unsafe characters and dot runs are stripped.

        Args:
            name: New filename without extension.

        Returns:
            Self.
        """
        self._name = sanitize_name(name)
        return self

    def get_extension(self) -> str:
        return self._extension

    def set_extension(self, extension: str) -> Self:
        """Set the extension, stored lowercase and without dot prefix.

        Args:
            extension: New extension.

        Returns:
            Self.
        """
        self._extension = extension.lstrip('.').lower()
        return self

    def get_name_with_extension(self) -> str:
        if not self._extension:
            return self._name
        return f'{self._name}.{self._extension}'

    def get_mimetype(self) -> str:
        if self._mimetype is None:
            self._mimetype = detect_mime_type(self._pathname)
        return self._mimetype

    def get_size(self) -> int:
        return os.stat(self._pathname).st_size

    def get_md5(self) -> str:
        if self._md5 is None:
            self._md5 = calculate_checksum(self._pathname)
        return self._md5

    def get_dimensions(self) -> dict[str, int]:
        return read_image_dimensions(self._pathname)

    def is_uploaded_file(self) -> bool:
        """Check the file was delivered by the upload transport.

        Only regular files inside the staging directory qualify, so a
        path pointing anywhere else on disk is rejected.

        Returns:
            True if the file lives in the staging directory.
        """
        path = Path(self._pathname)
        if not path.is_file():
            return False

        staging_directory = get_staging_directory().resolve()
        return path.resolve().is_relative_to(staging_directory)

    def to_dict(self) -> dict[str, Any]:
        """Serialize identity fields.

        Returns:
            Dictionary with pathname, name and extension.
        """
        return {
            'pathname': self._pathname,
            'name': self._name,
            'extension': self._extension,
        }
