# evaluator/uploads.py
"""
Two-phase upload of staged files.

For each file, strictly in order:
1. request a single-use upload URL (ticket)
2. POST the raw bytes there with the file's content type
3. read {"storageId"} from the acknowledgment

The first file that fails aborts the batch with UploadFailure; no partial
list of references is ever returned. Files already uploaded by an aborted
batch are left orphaned on the server.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

from evaluator.api import EvaluationsApi
from evaluator.errors import ApiError, AuthorizationFailure, UploadFailure, ValidationFailure
from evaluator.groups import StagedFile


_logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """Turns staged files into storage references, preserving order."""

    def __init__(self, api: EvaluationsApi):
        self.api = api

    def upload(self, files: Sequence[StagedFile]) -> List[str]:
        """
        Upload files sequentially.

        Returns:
            One storage reference per file, in input order

        Raises:
            UploadFailure: ticket issuance, transfer or acknowledgment failed
            AuthorizationFailure: no principal to issue a ticket for
            NetworkFailure: transport error
        """
        references: List[str] = []
        for index, file in enumerate(files):
            references.append(self._upload_one(index, file))
            _logger.debug(f"Uploaded file {index + 1}/{len(files)} ({file.size} bytes)")

        if references:
            _logger.info(f"Uploaded {len(references)} file(s)")
        return references

    def _upload_one(self, index: int, file: StagedFile) -> str:
        try:
            upload_url = self.api.generate_upload_url()
        except (ApiError, ValidationFailure) as e:
            raise UploadFailure(f"could not get an upload URL: {e}", index=index) from e

        try:
            acknowledgment = self.api.upload_bytes(upload_url, file.data, file.content_type)
        except (ApiError, ValidationFailure, AuthorizationFailure) as e:
            raise UploadFailure(f"transfer rejected: {e}", index=index) from e

        storage_id = acknowledgment.get("storageId")
        if not isinstance(storage_id, str) or not storage_id:
            raise UploadFailure("acknowledgment has no storageId", index=index)
        return storage_id
