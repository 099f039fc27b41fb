"""Contracts consumed by UploadBatch.

Three capabilities meet in a batch:

- FileInfoProtocol describes one received file.
- Validation enforces one constraint on a file.
- Storage persists a file once every validation passed.

All three are structural: any object with the right methods qualifies,
no base class is required.
"""

from typing import Any, Protocol, Self, runtime_checkable


@runtime_checkable
class FileInfoProtocol(Protocol):
    """Capability contract of one uploaded file."""

    def get_pathname(self) -> str:
        """Current location of the file content."""
        ...

    def set_pathname(self, pathname: str) -> Self:
        """Point the file at a new location (used by storage)."""
        ...

    def get_name(self) -> str:
        """Filename without extension."""
        ...

    def set_name(self, name: str) -> Self:
        """Rename the file before it is stored."""
        ...

    def get_extension(self) -> str:
        """File extension without dot prefix."""
        ...

    def set_extension(self, extension: str) -> Self:
        """Change the extension (without dot prefix) before storing."""
        ...

    def get_name_with_extension(self) -> str:
        """Filename including extension."""
        ...

    def get_mimetype(self) -> str:
        """MIME type sniffed from the content."""
        ...

    def get_size(self) -> int:
        """File size in bytes."""
        ...

    def get_md5(self) -> str:
        """Hex MD5 checksum of the content."""
        ...

    def get_dimensions(self) -> dict[str, int]:
        """Pixel width and height for images, empty otherwise."""
        ...

    def is_uploaded_file(self) -> bool:
        """Whether the upload transport really delivered this file."""
        ...

    def to_dict(self) -> dict[str, Any]:
        """Identity fields for error records."""
        ...


@runtime_checkable
class Validation(Protocol):
    """One constraint enforced on every file of a batch.

    Implementations may hold their own configuration (allowed
    extensions, size limits) but no state about the batch.
    """

    def validate(self, file_info: FileInfoProtocol) -> None:
        """Check the file.

        Raises:
            FileValidationError: If the file breaks the constraint.
            django.core.exceptions.ValidationError: Same, Django style.
        """
        ...


@runtime_checkable
class Storage(Protocol):
    """Delegate that persists validated files."""

    def upload(self, file_info: FileInfoProtocol) -> None:
        """Persist the file and update its pathname to the final location.

        Raises:
            StorageError: If the file cannot be persisted.
        """
        ...
