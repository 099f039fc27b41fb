"""File upload settings."""

import tempfile
from pathlib import Path
from typing import Final

from server.settings.components import config

# Master switch: an UploadBatch refuses to start when this is off
FILE_UPLOADS_ENABLED = config('FILE_UPLOADS_ENABLED', cast=bool, default=True)

# Staging area for received files, kept apart from the shared temp directory
FILE_UPLOAD_TEMP_DIR = config('FILE_UPLOAD_TEMP_DIR', default='') or str(
    Path(tempfile.gettempdir()).joinpath('upload-staging'),
)
Path(FILE_UPLOAD_TEMP_DIR).mkdir(parents=True, exist_ok=True)

# Every received file must be addressable on disk before validation
FILE_UPLOAD_HANDLERS: Final = (
    'django.core.files.uploadhandler.TemporaryFileUploadHandler',
)

# Storage prefix under which validated files are persisted
UPLOAD_STORAGE_DIRECTORY = config('UPLOAD_STORAGE_DIRECTORY', default='uploads')
