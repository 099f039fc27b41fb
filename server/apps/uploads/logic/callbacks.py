"""Lifecycle callbacks fired by UploadBatch."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Final, final

from server.apps.uploads.contracts import FileInfoProtocol

FileInfoCallback = Callable[[FileInfoProtocol], object]

_NOT_CALLABLE_MESSAGE: Final = 'Callback is not a function or callable object.'
CALLBACK_SLOTS: Final = (
    'before_validation',
    'after_validation',
    'before_upload',
    'after_upload',
)


def ensure_callable(callback: object) -> FileInfoCallback:
    """Check a callback can be invoked.

    Args:
        callback: Candidate callback.

    Returns:
        The same callback.

    Raises:
        TypeError: If the callback is not callable.
    """
    if not callable(callback):
        raise TypeError(_NOT_CALLABLE_MESSAGE)
    return callback


@final
@dataclass(slots=True)
class UploadCallbacks:
    """One optional callback per lifecycle point.

    Each callback receives the FileInfo being processed. Exceptions raised
    by a callback are not caught and abort the current operation.
    """

    before_validation: FileInfoCallback | None = None
    after_validation: FileInfoCallback | None = None
    before_upload: FileInfoCallback | None = None
    after_upload: FileInfoCallback | None = None

    def __post_init__(self) -> None:
        """Reject non-callable callbacks."""
        for slot in CALLBACK_SLOTS:
            callback = getattr(self, slot)
            if callback is not None:
                ensure_callable(callback)

    def fire(self, slot: str, file_info: FileInfoProtocol) -> None:
        """Invoke the callback registered for a slot, if any.

        Args:
            slot: One of the field names of this class.
            file_info: File being processed.

        Raises:
            ValueError: If the slot is not a lifecycle point.
        """
        if slot not in CALLBACK_SLOTS:
            raise ValueError(f'Unknown callback slot: {slot}')
        callback = getattr(self, slot)
        if callback is not None:
            callback(file_info)
