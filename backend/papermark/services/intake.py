"""
File intake - decodes uploaded files and writes them to content storage.
"""

import logging
import uuid

from ..errors import PaperMarkError, UpstreamError, ValidationError
from ..models import UploadedFile
from ..utils import decode_base64_payload

logger = logging.getLogger(__name__)

EXAM_NAMESPACE = "exams"
MARK_SCHEME_NAMESPACE = "markschemes"


class FileIntakeService:
    """Stores files under a per-user, randomized key and returns their URL."""

    def __init__(self, storage):
        self.storage = storage

    @staticmethod
    def build_key(namespace: str, owner_id: int, filename: str) -> str:
        safe_name = filename.replace("/", "_").replace("\\", "_") or "upload"
        return f"{namespace}/{owner_id}/{uuid.uuid4().hex}-{safe_name}"

    async def store(self, owner_id: int, file: UploadedFile, namespace: str = EXAM_NAMESPACE) -> str:
        """
        Store one uploaded file.

        Returns:
            Public URL of the stored file

        Raises:
            ValidationError: If the payload is not valid base64
            UpstreamError: If the storage write fails
        """
        try:
            data = decode_base64_payload(file.data)
        except ValueError as e:
            raise ValidationError(f"{file.name}: {e}") from e

        key = self.build_key(namespace, owner_id, file.name)
        try:
            stored = await self.storage.put(key, data, file.type)
        except PaperMarkError:
            raise
        except Exception as e:
            logger.error(f"Upload of {file.name} failed: {e}")
            raise UpstreamError("Upload failed") from e

        logger.info(f"📦 Stored {file.name} ({len(data)} bytes) as {key}")
        return stored["url"]
