"""Tests for the Django storage delegate."""

from pathlib import Path

import boto3
import pytest
from django.core.files.storage import FileSystemStorage
from moto import mock_aws
from storages.backends.s3 import S3Storage

from server.apps.uploads.contracts import Storage
from server.apps.uploads.exceptions import StorageError
from server.apps.uploads.file_info import FileInfo
from server.apps.uploads.infrastructure.storage import DjangoStorage
from server.apps.uploads.logic.upload_batch import UploadBatch


@pytest.fixture
def mock_s3_backend():
    """Mock S3 service with an uploads bucket.

    Yields:
        S3Storage backend bound to the mocked bucket.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='uploads')

        yield S3Storage(
            bucket_name='uploads',
            region_name='us-east-1',
            access_key='testing',
            secret_key='testing',
        )


@pytest.fixture
def filesystem_backend(tmp_path: Path) -> FileSystemStorage:
    """Local filesystem backend in a temporary directory.

    Returns:
        FileSystemStorage rooted in a fresh directory.
    """
    return FileSystemStorage(location=tmp_path / 'media')


def test_django_storage_satisfies_contract(filesystem_backend):
    """Test the delegate implements the Storage contract."""
    assert isinstance(DjangoStorage(filesystem_backend), Storage)


def test_upload_to_filesystem(filesystem_backend, staged_file):
    """Test content is saved and the pathname follows it."""
    file_info = FileInfo(staged_file(content=b'meow'), 'cat.txt')

    DjangoStorage(filesystem_backend, directory='avatars').upload(file_info)

    assert file_info.get_pathname() == 'avatars/cat.txt'
    with filesystem_backend.open('avatars/cat.txt') as stored:
        assert stored.read() == b'meow'


def test_upload_keeps_both_on_name_clash(filesystem_backend, staged_file):
    """Test the pathname reflects the name chosen by the backend."""
    storage = DjangoStorage(filesystem_backend, directory='')
    first = FileInfo(staged_file('a.tmp', b'one'), 'cat.txt')
    second = FileInfo(staged_file('b.tmp', b'two'), 'cat.txt')

    storage.upload(first)
    storage.upload(second)

    assert first.get_pathname() == 'cat.txt'
    assert second.get_pathname() != 'cat.txt'
    assert second.get_pathname().startswith('cat_')


def test_upload_uses_directory_setting(settings, filesystem_backend, staged_file):
    """Test the default directory comes from settings."""
    settings.UPLOAD_STORAGE_DIRECTORY = '/incoming/'
    file_info = FileInfo(staged_file(), 'cat.txt')

    DjangoStorage(filesystem_backend).upload(file_info)

    assert file_info.get_pathname() == 'incoming/cat.txt'


def test_upload_failure_raises_storage_error(filesystem_backend, staging_dir):
    """Test backend failures are wrapped with the offending file."""
    file_info = FileInfo(staging_dir / 'vanished.tmp', 'cat.txt')

    with pytest.raises(StorageError) as exc_info:
        DjangoStorage(filesystem_backend).upload(file_info)

    assert exc_info.value.file_info is file_info
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert file_info.get_pathname().endswith('vanished.tmp')


def test_upload_to_s3(mock_s3_backend, staged_file):
    """Test content is saved to the S3 bucket."""
    file_info = FileInfo(staged_file(content=b'meow'), 'cat.txt')

    DjangoStorage(mock_s3_backend, directory='uploads').upload(file_info)

    assert file_info.get_pathname() == 'uploads/cat.txt'
    assert mock_s3_backend.exists('uploads/cat.txt')
    with mock_s3_backend.open('uploads/cat.txt') as stored:
        assert stored.read() == b'meow'


def test_batch_upload_to_s3(mock_s3_backend, staged_file, signal_for):
    """Test a whole batch lands in S3 under renamed keys."""
    files = signal_for(
        'photos',
        (staged_file('a.tmp', b'one'), 'one.txt', 0),
        (staged_file('b.tmp', b'two'), 'two.txt', 0),
    )
    batch = UploadBatch('photos', DjangoStorage(mock_s3_backend, 'album'), files)
    batch.before_upload(lambda file_info: file_info.set_name(f'x-{file_info.get_name()}'))

    batch.upload()

    assert batch.get_pathname() == ['album/x-one.txt', 'album/x-two.txt']
    assert mock_s3_backend.exists('album/x-one.txt')
    assert mock_s3_backend.exists('album/x-two.txt')
