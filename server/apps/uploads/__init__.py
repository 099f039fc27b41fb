"""Uploads app: validate files received in a request and persist them.

The entry point is :class:`server.apps.uploads.logic.upload_batch.UploadBatch`,
which collects every file submitted under one form field, runs a chain of
validators against each of them and hands the survivors to a storage
delegate.
"""
