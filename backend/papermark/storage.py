"""
Content storage for uploaded exam pages and mark schemes, backed by GridFS.

Files are stored with the storage key as their GridFS filename and served
back through /api/files/<key>, which is the public URL handed to the UI and
to the grading oracle.
"""

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote

from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorGridFSBucket
from pymongo.errors import PyMongoError

from .db import Database
from .errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class GridFSStorage:
    """put/open over an AsyncIOMotorGridFSBucket."""

    def __init__(self, database: Database, public_base_url: str, bucket_name: str = "uploads"):
        self.bucket = AsyncIOMotorGridFSBucket(database.db, bucket_name=bucket_name)
        self.public_base_url = public_base_url.rstrip("/")

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/api/files/{quote(key)}"

    async def put(self, key: str, data: bytes, content_type: str) -> Dict[str, str]:
        try:
            await self.bucket.upload_from_stream(
                key,
                data,
                metadata={"content_type": content_type or DEFAULT_CONTENT_TYPE}
            )
        except PyMongoError as e:
            logger.error(f"Storage put failed for {key}: {e}")
            raise UpstreamError("Upload failed") from e
        return {"key": key, "url": self.url_for(key)}

    async def open(self, key: str) -> Optional[Tuple[bytes, str]]:
        """Latest revision of a stored file, or None if the key is unknown."""
        try:
            stream = await self.bucket.open_download_stream_by_name(key)
            data = await stream.read()
        except NoFile:
            return None
        except PyMongoError as e:
            logger.error(f"Storage read failed for {key}: {e}")
            raise UpstreamError("Could not read stored file") from e
        metadata = stream.metadata or {}
        return data, metadata.get("content_type", DEFAULT_CONTENT_TYPE)
