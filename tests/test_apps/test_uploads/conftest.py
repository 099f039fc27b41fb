"""Shared fixtures for uploads app tests."""

from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from server.apps.uploads.exceptions import FileValidationError, StorageError


class RecordingStorage:
    """Storage delegate that remembers what it was asked to store."""

    def __init__(self, events: list[str]) -> None:
        self.events = events
        self.uploaded: list[str] = []

    def upload(self, file_info) -> None:
        self.events.append(f'storage:{file_info.get_name_with_extension()}')
        self.uploaded.append(file_info.get_name_with_extension())


class FailingStorage:
    """Storage delegate that fails on a given filename."""

    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on
        self.uploaded: list[str] = []

    def upload(self, file_info) -> None:
        name = file_info.get_name_with_extension()
        if name == self.fail_on:
            raise StorageError(f'Cannot store {name}', file_info=file_info)
        self.uploaded.append(name)


class RejectingValidation:
    """Validation that always fails with a fixed message."""

    def __init__(self, message: str, events: list[str] | None = None) -> None:
        self.message = message
        self.events = events if events is not None else []

    def validate(self, file_info) -> None:
        self.events.append(f'validate:{file_info.get_name_with_extension()}')
        raise FileValidationError(self.message, file_info=file_info)


class AcceptingValidation:
    """Validation that always passes."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.events = events if events is not None else []

    def validate(self, file_info) -> None:
        self.events.append(f'validate:{file_info.get_name_with_extension()}')


@pytest.fixture
def events() -> list[str]:
    """Shared log of callback, validation and storage invocations.

    Returns:
        Empty list collecting event names in call order.
    """
    return []


@pytest.fixture
def storage(events: list[str]) -> RecordingStorage:
    """Storage delegate recording uploads.

    Returns:
        RecordingStorage writing into the shared event log.
    """
    return RecordingStorage(events)


@pytest.fixture
def failing_storage() -> Callable[[str], FailingStorage]:
    """Factory for storage delegates failing on one filename.

    Returns:
        Callable building FailingStorage instances.
    """
    return FailingStorage


@pytest.fixture
def rejecting_validation() -> Callable[..., RejectingValidation]:
    """Factory for validations that always fail.

    Returns:
        Callable building RejectingValidation instances.
    """
    return RejectingValidation


@pytest.fixture
def accepting_validation() -> Callable[..., AcceptingValidation]:
    """Factory for validations that always pass.

    Returns:
        Callable building AcceptingValidation instances.
    """
    return AcceptingValidation


@pytest.fixture
def staging_dir(settings, tmp_path: Path) -> Path:
    """Point FILE_UPLOAD_TEMP_DIR at a fresh directory.

    Returns:
        Path of the staging directory.
    """
    directory = tmp_path / 'staging'
    directory.mkdir()
    settings.FILE_UPLOAD_TEMP_DIR = str(directory)
    return directory


@pytest.fixture
def staged_file(staging_dir: Path) -> Callable[..., str]:
    """Factory writing files into the staging directory.

    Returns:
        Callable taking a staging filename and content, returning the path.
    """
    def factory(
        filename: str = 'upload1a2b3c.tmp',
        content: bytes = b'test file content',
    ) -> str:
        path = staging_dir / filename
        path.write_bytes(content)
        return str(path)

    return factory


@pytest.fixture
def staged_image(staging_dir: Path) -> str:
    """Small PNG image in the staging directory.

    Returns:
        Path of a 4x3 PNG image staged without extension.
    """
    path = staging_dir / 'img4x3.tmp'
    Image.new('RGB', (4, 3), color='red').save(path, format='PNG')
    return str(path)


@pytest.fixture
def outside_file(tmp_path: Path) -> str:
    """File that exists on disk but outside the staging directory.

    Returns:
        Path of the file.
    """
    directory = tmp_path / 'elsewhere'
    directory.mkdir()
    path = directory / 'passwd'
    path.write_bytes(b'root:x:0:0')
    return str(path)


@pytest.fixture
def signal_for() -> Callable[..., dict]:
    """Factory building transport signals for one field.

    Returns:
        Callable taking the field key and ``(tmp_name, name, error)``
        tuples. One tuple builds a single record, several build parallel
        lists.
    """
    def factory(key: str, *records: tuple[str, str, int]) -> dict:
        if len(records) == 1:
            tmp_name, name, error = records[0]
            return {key: {'tmp_name': tmp_name, 'name': name, 'error': error}}
        return {
            key: {
                'tmp_name': [record[0] for record in records],
                'name': [record[1] for record in records],
                'error': [record[2] for record in records],
            },
        }

    return factory
