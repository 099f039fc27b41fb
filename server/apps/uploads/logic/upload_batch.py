"""Upload orchestration for the files submitted under one form field.

Typical use in a view::

    batch = UploadBatch.from_request(request, 'photos', DjangoStorage())
    batch.add_validations([MaxSize('5M'), AllowedExtensions({'jpg', 'png'})])
    batch.before_upload(lambda file_info: file_info.set_name(uuid4().hex))
    with batch:
        if batch.is_valid():
            batch.upload()
        else:
            errors = batch.get_errors()

Per-file problems (transport failures, rejected validations) never raise:
they are collected as ``"<filename>: <message>"`` lines in ``get_errors()``.
Exceptions are reserved for request-level failures: uploads disabled,
unknown field, bad callback, invalid batch passed to ``upload()`` and
storage errors.

Files the request adapter staged itself are removed once ``upload()``
returns or raises, or when the batch is used as a context manager, on exit.
"""

import logging
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType, TracebackType
from typing import Any, Final, Self, final

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.http import HttpRequest

from server.apps.uploads.contracts import FileInfoProtocol, Storage, Validation
from server.apps.uploads.exceptions import (
    FileValidationError,
    UploadValidationFailed,
)
from server.apps.uploads.file_info import FileInfo
from server.apps.uploads.logic.callbacks import (
    FileInfoCallback,
    UploadCallbacks,
    ensure_callable,
)
from server.apps.uploads.transport import (
    collect_request_files,
    describe_error,
    discard_staged_file,
    read_signal,
)

BYTE: Final = 1
KILOBYTE: Final = 1024
MEGABYTE: Final = 1024 * KILOBYTE
GIGABYTE: Final = 1024 * MEGABYTE

_SIZE_UNITS: Final = MappingProxyType({
    'b': BYTE,
    'k': KILOBYTE,
    'm': MEGABYTE,
    'g': GIGABYTE,
})
_LEADING_INTEGER: Final = re.compile(r'\s*([+-]?\d+)')
_NOT_UPLOADED_MESSAGE: Final = 'Is not an uploaded file'
_DISPATCHABLE: Final = frozenset(
    name for name in vars(FileInfoProtocol) if not name.startswith('_')
)

FileInfoFactory = Callable[[str, str], FileInfoProtocol]

logger = logging.getLogger(__name__)


def _format_error(filename: str, message: str) -> str:
    return f'{filename}: {message}'


@final
class UploadBatch:  # noqa: WPS214
    """Files submitted under one field, validated and stored together.

    The batch is built once from the transport signal. Files the
    transport failed to deliver are recorded as errors and left out of
    the batch; every other file becomes a FileInfo entry, in the order the
    transport reported them.

    Attribute access for anything FileInfo offers but the batch does not
    is forwarded to the entries: ``batch.get_size()`` returns the size of
    the only entry, a list of sizes for several entries, or None for an
    empty batch.
    """

    def __init__(
        self,
        key: str,
        storage: Storage,
        files: Mapping[str, Mapping[str, Any]],
        callbacks: UploadCallbacks | None = None,
        file_info_factory: FileInfoFactory = FileInfo.create_from_factory,
    ) -> None:
        """Initialize UploadBatch from a transport signal.

        Args:
            key: Field identifier to read from the signal.
            storage: Delegate that persists validated files.
            files: Transport signal for the request.
            callbacks: Lifecycle callbacks, may also be set later.
            file_info_factory: Builds a FileInfo from staging path and
                submitted name.

        Raises:
            ImproperlyConfigured: If FILE_UPLOADS_ENABLED is off.
            ValueError: If the signal has no entry for the key.
        """
        if not getattr(settings, 'FILE_UPLOADS_ENABLED', True):
            raise ImproperlyConfigured(
                'File uploads are disabled by the FILE_UPLOADS_ENABLED setting',
            )

        self._key = key
        self._storage = storage
        self._callbacks = callbacks or UploadCallbacks()
        self._validations: list[Validation] = []
        self._entries: list[FileInfoProtocol] = []
        self._transport_errors: list[str] = []
        self._staged_paths: list[str] = []

        for record in read_signal(files, key):
            if record.staged and record.tmp_name:
                self._staged_paths.append(record.tmp_name)
            if not record.is_ok:
                message = _format_error(
                    record.name,
                    describe_error(record.error),
                )
                logger.warning('Upload transport error: %s', message)
                self._transport_errors.append(message)
                continue
            self._entries.append(
                file_info_factory(record.tmp_name, record.name),
            )

        self._errors: list[str] = list(self._transport_errors)
        logger.info(
            'Collected %d file(s) for field %s (%d transport error(s))',
            len(self._entries),
            key,
            len(self._transport_errors),
        )

    @classmethod
    def from_request(
        cls,
        request: HttpRequest,
        key: str,
        storage: Storage,
        callbacks: UploadCallbacks | None = None,
    ) -> Self:
        """Build a batch from the files of a Django request.

        Args:
            request: Incoming request carrying ``request.FILES``.
            key: Form field holding the files.
            storage: Delegate that persists validated files.
            callbacks: Lifecycle callbacks, may also be set later.

        Returns:
            New UploadBatch.
        """
        return cls(key, storage, collect_request_files(request.FILES), callbacks)

    @staticmethod
    def human_readable_to_bytes(size: str) -> int:
        """Convert a human readable size (e.g. "10K" or "3M") into bytes.

        Recognized suffixes are b, k, m and g in any case. Without a
        recognized suffix the leading integer is returned as is.

        Args:
            size: Size literal.

        Returns:
            Number of bytes, 0 if the literal has no leading integer.
        """
        match = _LEADING_INTEGER.match(size)
        number = int(match.group(1)) if match else 0
        unit = size.strip()[-1:].lower()
        return number * _SIZE_UNITS.get(unit, BYTE)

    # Callbacks

    def before_validate(self, callback: FileInfoCallback) -> Self:
        """Set the callback fired before each file is validated."""
        self._callbacks.before_validation = ensure_callable(callback)
        return self

    def after_validate(self, callback: FileInfoCallback) -> Self:
        """Set the callback fired after each file is validated."""
        self._callbacks.after_validation = ensure_callable(callback)
        return self

    def before_upload(self, callback: FileInfoCallback) -> Self:
        """Set the callback fired before each file is stored."""
        self._callbacks.before_upload = ensure_callable(callback)
        return self

    def after_upload(self, callback: FileInfoCallback) -> Self:
        """Set the callback fired after each file is stored."""
        self._callbacks.after_upload = ensure_callable(callback)
        return self

    # Validation and errors

    def add_validation(self, validation: Validation) -> Self:
        """Append a validation to the chain.

        Args:
            validation: Object with a ``validate(file_info)`` method.

        Returns:
            Self.

        Raises:
            TypeError: If the object has no validate method.
        """
        if not isinstance(validation, Validation):
            raise TypeError(
                f'{type(validation).__name__} does not implement validate()',
            )
        self._validations.append(validation)
        return self

    def add_validations(self, validations: Iterable[Validation]) -> Self:
        """Append several validations to the chain, in order."""
        for validation in validations:
            self.add_validation(validation)
        return self

    def get_validations(self) -> list[Validation]:
        return list(self._validations)

    def get_errors(self) -> list[str]:
        return list(self._errors)

    def is_valid(self) -> bool:
        """Validate every entry and report whether the batch is clean.

        Errors are rebuilt on every call: transport errors recorded at
        construction first, then one line per failed check of this sweep.
        A file the transport did not deliver runs no validation. A failed
        validation does not stop the remaining ones for the same file.

        Returns:
            True if no error was recorded.
        """
        self._errors = list(self._transport_errors)

        for file_info in self._entries:
            self._callbacks.fire('before_validation', file_info)

            if file_info.is_uploaded_file():
                self._run_validations(file_info)
            else:
                self._record_error(file_info, _NOT_UPLOADED_MESSAGE)

            self._callbacks.fire('after_validation', file_info)

        if self._errors:
            logger.info(
                'Field %s failed validation with %d error(s)',
                self._key,
                len(self._errors),
            )
            return False
        return True

    def upload(self) -> bool:
        """Validate the batch and hand every entry to storage.

        Entries are stored one at a time in order. A storage failure
        propagates immediately: later entries are not attempted and
        entries already stored are not removed. Staged files are discarded
        whatever the outcome.

        Returns:
            True once every entry was stored.

        Raises:
            UploadValidationFailed: If the batch is not valid; storage is
                never invoked in that case.
        """
        try:
            if not self.is_valid():
                raise UploadValidationFailed(self._errors)

            for file_info in self._entries:
                self._callbacks.fire('before_upload', file_info)
                self._storage.upload(file_info)
                self._callbacks.fire('after_upload', file_info)
        finally:
            self.discard_staged_files()

        logger.info(
            'Uploaded %d file(s) for field %s',
            len(self._entries),
            self._key,
        )
        return True

    def discard_staged_files(self) -> None:
        """Remove the files the request adapter staged for this batch."""
        while self._staged_paths:
            discard_staged_file(self._staged_paths.pop())

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.discard_staged_files()

    def _run_validations(self, file_info: FileInfoProtocol) -> None:
        for validation in self._validations:
            try:
                validation.validate(file_info)
            except FileValidationError as error:
                self._record_error(file_info, error.message)
            except ValidationError as error:
                for message in error.messages:
                    self._record_error(file_info, message)

    def _record_error(self, file_info: FileInfoProtocol, message: str) -> None:
        error = _format_error(file_info.get_name_with_extension(), message)
        logger.warning('Upload validation error: %s', error)
        self._errors.append(error)

    # Entries

    @property
    def entries(self) -> tuple[FileInfoProtocol, ...]:
        """Entries in transport order."""
        return tuple(self._entries)

    @property
    def file_info(self) -> FileInfoProtocol | list[FileInfoProtocol] | None:
        """The single entry, the list of entries, or None when empty."""
        if not self._entries:
            return None
        if len(self._entries) == 1:
            return self._entries[0]
        return list(self._entries)

    def has_entry(self, index: int) -> bool:
        """Check whether an entry exists at a position."""
        return -len(self._entries) <= index < len(self._entries)

    def __getitem__(self, index: int) -> FileInfoProtocol:
        return self._entries[index]

    def __setitem__(self, index: int, file_info: FileInfoProtocol) -> None:
        self._entries[index] = file_info

    def __delitem__(self, index: int) -> None:
        del self._entries[index]  # noqa: WPS420

    def __iter__(self) -> Iterator[FileInfoProtocol]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getattr__(self, name: str) -> Any:
        """Forward FileInfo capabilities to the entries.

        Args:
            name: Attribute missing on the batch itself.

        Returns:
            Callable invoking the method on every entry.

        Raises:
            AttributeError: If FileInfo has no such capability.
        """
        if name not in _DISPATCHABLE:
            raise AttributeError(
                f'{type(self).__name__!r} object has no attribute {name!r}',
            )

        def dispatch(*args: Any, **kwargs: Any) -> Any:  # noqa: WPS430
            results = [
                getattr(entry, name)(*args, **kwargs)
                for entry in self._entries
            ]
            if not results:
                return None
            if len(results) == 1:
                return results[0]
            return results

        return dispatch
