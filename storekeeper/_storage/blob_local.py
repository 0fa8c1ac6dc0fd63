"""Filesystem blob storage for backup artifacts."""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from ..base import BaseBlobStorage
from .._utils import logger


@dataclass
class LocalBlobStorage(BaseBlobStorage):
    def __post_init__(self):
        self.root = Path(self.global_config.get("blob_local_dir", "./backup_blobs"))
        self.public_base_url = self.global_config.get("blob_public_base_url")

    async def upload(
        self, data: bytes, path: str, content_type: str = "application/octet-stream"
    ) -> str:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Blob path escapes storage root: {path}")
        await asyncio.to_thread(self._write, target, data)
        logger.debug(f"Stored blob {path} ({len(data):,} bytes)")

        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        return target.as_uri()

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
