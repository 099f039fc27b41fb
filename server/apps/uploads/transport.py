"""Transport signal: raw per-file metadata reported for a request.

A transport signal maps a form field to a record with ``tmp_name``,
``name`` and ``error`` keys. Each value is a scalar for a single file or a
list for a multi-file submission, where index ``i`` of every list
describes the same file::

    {
        'avatar': {'tmp_name': '/tmp/a1', 'name': 'me.png', 'error': 0},
        'photos': {
            'tmp_name': ['/tmp/b1', '/tmp/b2'],
            'name': ['one.jpg', 'two.jpg'],
            'error': [0, 3],
        },
    }

Django does not speak this format natively, so
:func:`collect_request_files` converts ``request.FILES`` into it. Records
it produces may carry an extra ``staged`` flag (scalar or list) marking
files the adapter wrote itself.
"""

import logging
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final, final

from django.conf import settings
from django.core.files.uploadedfile import UploadedFile
from django.utils.datastructures import MultiValueDict

logger = logging.getLogger(__name__)

_STAGED_SUFFIX: Final = '.upload'
_DEFAULT_STAGING_NAME: Final = 'upload-staging'


class UploadErrorCode(IntEnum):
    """Per-file status reported by the upload transport."""

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    # 5 is unused
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


ERROR_MESSAGES: Final[Mapping[int, str]] = MappingProxyType({
    UploadErrorCode.INI_SIZE: (
        'The uploaded file exceeds the maximum upload size of the server'
    ),
    UploadErrorCode.FORM_SIZE: (
        'The uploaded file exceeds the maximum size declared by the form'
    ),
    UploadErrorCode.PARTIAL: 'The uploaded file was only partially uploaded',
    UploadErrorCode.NO_FILE: 'No file was uploaded',
    UploadErrorCode.NO_TMP_DIR: 'Missing a temporary folder',
    UploadErrorCode.CANT_WRITE: 'Failed to write file to disk',
    UploadErrorCode.EXTENSION: 'An upload handler stopped the file upload',
})


@final
@dataclass(frozen=True, slots=True)
class UploadedFileRecord:
    """One file as reported by the transport.

    ``staged`` marks a file the request adapter wrote into the staging
    directory itself; whoever consumes the record owns that file and must
    remove it.
    """

    tmp_name: str
    name: str
    error: int = UploadErrorCode.OK
    staged: bool = False

    @property
    def is_ok(self) -> bool:
        """Whether the transport delivered the file without error."""
        return self.error == UploadErrorCode.OK

    def as_signal(self) -> dict[str, Any]:
        """Return the record in transport signal form."""
        return {
            'tmp_name': self.tmp_name,
            'name': self.name,
            'error': self.error,
            'staged': self.staged,
        }


def describe_error(code: int) -> str:
    """Get the human-readable description of a transport error code.

    Args:
        code: Error code reported by the transport.

    Returns:
        Description from ERROR_MESSAGES, or a generic message for codes
        outside the known set.
    """
    try:
        return ERROR_MESSAGES[code]
    except KeyError:
        return f'Unknown upload error (code {code})'


def get_staging_directory() -> Path:
    """Get the directory where received files are staged.

    Returns:
        ``settings.FILE_UPLOAD_TEMP_DIR``, or a dedicated subdirectory of
        the system temp directory when the setting is empty.
    """
    directory = getattr(settings, 'FILE_UPLOAD_TEMP_DIR', None)
    if directory:
        return Path(directory)
    return Path(tempfile.gettempdir()).joinpath(_DEFAULT_STAGING_NAME)


def read_signal(
    files: Mapping[str, Mapping[str, Any]],
    key: str,
) -> list[UploadedFileRecord]:
    """Read the records submitted under one field.

    Args:
        files: Transport signal for the whole request.
        key: Field identifier to read.

    Returns:
        Records in the order reported by the transport.

    Raises:
        ValueError: If the signal has no entry for the key.
    """
    if key not in files:
        raise ValueError(
            f'Cannot find uploaded file(s) identified by key: {key}',
        )

    entry = files[key]
    tmp_names = entry['tmp_name']
    if not isinstance(tmp_names, (list, tuple)):
        return [
            UploadedFileRecord(
                tmp_name=tmp_names,
                name=entry['name'],
                error=int(entry['error']),
                staged=bool(entry.get('staged', False)),
            ),
        ]

    staged_flags = entry.get('staged') or [False] * len(tmp_names)
    return [
        UploadedFileRecord(
            tmp_name=tmp_name,
            name=entry['name'][index],
            error=int(entry['error'][index]),
            staged=bool(staged_flags[index]),
        )
        for index, tmp_name in enumerate(tmp_names)
    ]


def collect_request_files(
    files: MultiValueDict[str, UploadedFile],
) -> dict[str, dict[str, Any]]:
    """Convert Django's ``request.FILES`` into a transport signal.

    A field with one file becomes a single record, a field with several
    files becomes parallel lists. Records of files written by the adapter
    carry ``staged`` set, so the batch built from the signal removes them
    once it is done.

    Args:
        files: ``request.FILES`` of the incoming request.

    Returns:
        Transport signal keyed by field name.
    """
    signal: dict[str, dict[str, Any]] = {}
    for key, uploaded_files in files.lists():
        records = [stage_uploaded_file(uploaded) for uploaded in uploaded_files]
        if len(records) == 1:
            signal[key] = records[0].as_signal()
            continue
        signal[key] = {
            'tmp_name': [record.tmp_name for record in records],
            'name': [record.name for record in records],
            'error': [record.error for record in records],
            'staged': [record.staged for record in records],
        }
    return signal


def stage_uploaded_file(uploaded: UploadedFile) -> UploadedFileRecord:
    """Make sure a received file is addressable on disk.

    Files spooled to disk by TemporaryFileUploadHandler are used in place
    and removed by Django when closed. In-memory files are written into the
    staging directory and marked as staged. A partially written file is
    removed before the failure is reported.

    Args:
        uploaded: File received by Django.

    Returns:
        Record describing the staged file, or the failure to stage it.
    """
    name = uploaded.name or ''
    if hasattr(uploaded, 'temporary_file_path'):
        return UploadedFileRecord(uploaded.temporary_file_path(), name)

    staging_directory = get_staging_directory()
    if not staging_directory.is_dir():
        logger.warning(
            'Staging directory does not exist: %s',
            staging_directory,
        )
        return UploadedFileRecord('', name, UploadErrorCode.NO_TMP_DIR)

    try:
        staged = tempfile.NamedTemporaryFile(
            dir=staging_directory,
            suffix=_STAGED_SUFFIX,
            delete=False,
        )
    except OSError:
        logger.exception('Failed to create staging file for: %s', name)
        return UploadedFileRecord('', name, UploadErrorCode.CANT_WRITE)

    try:
        with staged:
            for chunk in uploaded.chunks():
                staged.write(chunk)
    except OSError:
        logger.exception('Failed to stage uploaded file: %s', name)
        discard_staged_file(staged.name)
        return UploadedFileRecord('', name, UploadErrorCode.CANT_WRITE)

    logger.debug('Staged in-memory upload %s at %s', name, staged.name)
    return UploadedFileRecord(staged.name, name, staged=True)


def discard_staged_file(pathname: str) -> None:
    """Remove a file the adapter wrote into the staging directory.

    Args:
        pathname: Path of the staged file; a missing file is ignored.
    """
    Path(pathname).unlink(missing_ok=True)
    logger.debug('Removed staged file: %s', pathname)
