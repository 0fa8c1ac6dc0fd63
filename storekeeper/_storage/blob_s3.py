"""S3 blob storage for backup artifacts."""

from dataclasses import dataclass, field
from typing import Any, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..base import BaseBlobStorage
from .._utils import logger


@dataclass
class S3BlobStorage(BaseBlobStorage):
    session: Optional[Any] = field(init=False, default=None)

    def __post_init__(self):
        self.bucket = self.global_config.get("blob_s3_bucket")
        if not self.bucket:
            raise ValueError("blob_s3_bucket is required for S3 blob storage")
        self.region = self.global_config.get("blob_s3_region", "us-east-1")
        self.endpoint_url = self.global_config.get("blob_s3_endpoint_url")
        self.public_base_url = self.global_config.get("blob_public_base_url")
        self.session = aioboto3.Session()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((BotoCoreError, ClientError)),
        reraise=True,
    )
    async def upload(
        self, data: bytes, path: str, content_type: str = "application/octet-stream"
    ) -> str:
        async with self.session.client(
            "s3",
            region_name=self.region,
            endpoint_url=self.endpoint_url,
        ) as s3:
            await s3.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=content_type)

        logger.info(f"Uploaded s3://{self.bucket}/{path} ({len(data):,} bytes)")
        return self.url_for(path)

    def url_for(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{path}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{path}"
