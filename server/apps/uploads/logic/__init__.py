"""Business logic layer for uploads app.

This package contains the upload orchestration:
- UploadBatch: collect, validate and store the files of one field
- UploadCallbacks: lifecycle hooks around validation and storage

Concrete validators and storage backends are plugged in from outside
through the contracts in ``server.apps.uploads.contracts``.
"""
