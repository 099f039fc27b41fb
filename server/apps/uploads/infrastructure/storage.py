"""Storage delegate backed by a Django storage backend."""

import logging
import posixpath
from typing import final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.core.files.storage import Storage as DjangoStorageBackend
from django.core.files.storage import default_storage

from server.apps.uploads.contracts import FileInfoProtocol
from server.apps.uploads.exceptions import StorageError

logger = logging.getLogger(__name__)


@final
class DjangoStorage:
    """Persist validated files through any Django storage backend.

    With no backend given, ``default_storage`` is used, which the project
    configures as django-storages' S3Storage (MinIO locally, R2 in
    production). Files land under ``<directory>/<name>.<extension>``;
    the backend may alter the name to avoid collisions, and the FileInfo
    pathname is updated to the name actually used.
    """

    def __init__(
        self,
        backend: DjangoStorageBackend | None = None,
        directory: str | None = None,
    ) -> None:
        """Initialize DjangoStorage.

        Args:
            backend: Django storage backend, defaults to default_storage.
            directory: Prefix for stored names, defaults to the
                UPLOAD_STORAGE_DIRECTORY setting.
        """
        self._backend = default_storage if backend is None else backend
        if directory is None:
            directory = getattr(settings, 'UPLOAD_STORAGE_DIRECTORY', '')
        self._directory = directory.strip('/')

    def get_target_name(self, file_info: FileInfoProtocol) -> str:
        """Build the storage name for a file.

        Args:
            file_info: File about to be stored.

        Returns:
            Storage name including the configured directory.
        """
        filename = file_info.get_name_with_extension()
        if not self._directory:
            return filename
        return posixpath.join(self._directory, filename)

    def upload(self, file_info: FileInfoProtocol) -> None:
        """Save file content to the backend.

        Args:
            file_info: Validated file to persist.

        Raises:
            StorageError: If reading the file or saving it fails.
        """
        target_name = self.get_target_name(file_info)
        try:
            logger.info('Uploading file to storage: %s', target_name)
            with open(file_info.get_pathname(), 'rb') as content:
                saved_name = self._backend.save(target_name, DjangoFile(content))
        except Exception as error:
            logger.exception('Failed to upload file to storage: %s', target_name)
            raise StorageError(
                f'Failed to upload file to storage: {target_name}',
                file_info=file_info,
            ) from error

        file_info.set_pathname(saved_name)
        logger.info('Successfully uploaded file: %s', saved_name)
