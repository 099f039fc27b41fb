"""Tests for lifecycle callbacks configuration."""

import pytest

from server.apps.uploads.file_info import FileInfo
from server.apps.uploads.logic.callbacks import UploadCallbacks


def test_non_callable_rejected_at_construction():
    """Test callbacks must be callable."""
    with pytest.raises(TypeError):
        UploadCallbacks(after_upload=42)


def test_fire_calls_slot(staged_file):
    """Test fire invokes the callback with the file info."""
    received = []
    callbacks = UploadCallbacks(before_upload=received.append)
    file_info = FileInfo(staged_file(), 'cat.txt')

    callbacks.fire('before_upload', file_info)
    callbacks.fire('after_upload', file_info)

    assert received == [file_info]


def test_fire_unknown_slot(staged_file):
    """Test only lifecycle points can be fired."""
    callbacks = UploadCallbacks()

    with pytest.raises(ValueError, match='Unknown callback slot'):
        callbacks.fire('fire', FileInfo(staged_file()))
