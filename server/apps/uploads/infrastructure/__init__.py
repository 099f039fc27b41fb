"""Infrastructure layer for uploads app.

This package contains integrations with external systems:
- Content inspection (MIME sniffing, checksum, image dimensions)
- Django storage backends (S3/MinIO/R2 via django-storages)

Keep infrastructure concerns separate from the batch logic.
"""
