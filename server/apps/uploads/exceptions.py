"""Exceptions for uploads app."""

import json
import traceback
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from server.apps.uploads.contracts import FileInfoProtocol


class UploadError(Exception):
    """Base error for upload failures, optionally tied to one file."""

    def __init__(
        self,
        message: str,
        file_info: 'FileInfoProtocol | None' = None,
        code: int = 0,
    ) -> None:
        """Initialize UploadError.

        Args:
            message: Human-readable error message.
            file_info: The offending file, if the error concerns one.
            code: Numeric error code for diagnostics.
        """
        self.message = message
        self.file_info = file_info
        self.code = code
        super().__init__(message)

    def get_location(self) -> tuple[str, int] | None:
        """Return the file and line the error was raised from.

        Returns:
            ``(filename, lineno)`` of the raising frame, or None if the
            error has not been raised yet.
        """
        if self.__traceback__ is None:
            return None
        frame = traceback.extract_tb(self.__traceback__)[-1]
        return frame.filename, frame.lineno or 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error into a record for logging or telemetry.

        Returns:
            Dictionary with the file info, message, code, raising
            location and formatted traceback.
        """
        location = self.get_location()
        return {
            'file_info': (
                self.file_info.to_dict() if self.file_info is not None else None
            ),
            'message': self.message,
            'code': self.code,
            'file': location[0] if location else None,
            'line': location[1] if location else None,
            'trace': ''.join(traceback.format_tb(self.__traceback__)),
        }


class FileValidationError(UploadError):
    """Raised by a validator when a file breaks its constraint."""


class StorageError(UploadError):
    """Raised by a storage delegate when a file cannot be persisted."""


class UploadValidationFailed(UploadError):
    """Raised by UploadBatch.upload() when the batch is not valid."""

    def __init__(self, errors: list[str]) -> None:
        """Initialize UploadValidationFailed.

        Args:
            errors: Every error accumulated by the batch.
        """
        self.errors = list(errors)
        super().__init__(
            'File validation failed. Errors: \n{errors}'.format(
                errors=json.dumps(self.errors, indent=4),
            ),
        )
