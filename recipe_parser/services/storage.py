"""S3 storage service for re-hosting ephemeral social media images."""

import asyncio
import hashlib
from dataclasses import dataclass
from typing import Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from recipe_parser.config import get_settings


@dataclass
class UploadResult:
    """Result of copying a remote image into the bucket."""
    success: bool
    public_url: Optional[str] = None
    error: Optional[str] = None


class StorageService:
    """
    Copies images into S3 so recipe photos outlive signed CDN links.

    Images are stored with the pattern: imports/{source_hash}/{n}.{ext}
    """

    def __init__(self):
        self._client = None

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            settings = get_settings()
            if settings.s3_enabled:
                self._client = boto3.client(
                    "s3",
                    aws_access_key_id=settings.aws_access_key_id,
                    aws_secret_access_key=settings.aws_secret_access_key,
                    region_name=settings.aws_region,
                )
        return self._client

    @property
    def bucket_name(self) -> Optional[str]:
        """Get bucket name from settings."""
        return get_settings().s3_bucket_name

    @property
    def is_enabled(self) -> bool:
        """Check if S3 storage is enabled."""
        return get_settings().s3_enabled

    def public_url(self, key: str) -> str:
        settings = get_settings()
        return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"

    async def upload_from_url(self, source_url: str, destination_key: str) -> UploadResult:
        """
        Download an image and upload it to S3.

        Args:
            source_url: External image URL
            destination_key: Key without extension; the extension follows the content type

        Returns:
            UploadResult with the public URL, or the error when anything failed
        """
        if not self.is_enabled:
            return UploadResult(success=False, error="S3 not configured")

        try:
            async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
                response = await client.get(source_url)
                response.raise_for_status()
                image_data = response.content
                content_type = response.headers.get("content-type", "image/jpeg")
        except httpx.HTTPError as e:
            print(f"❌ Failed to download image: {e}")
            return UploadResult(success=False, error=f"Download failed: {e}")

        if "png" in content_type:
            extension = "png"
        elif "webp" in content_type:
            extension = "webp"
        else:
            extension = "jpg"

        s3_key = f"{destination_key}.{extension}"
        try:
            # boto3 is blocking; keep the event loop free
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket_name,
                Key=s3_key,
                Body=image_data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            print(f"❌ Failed to upload to S3: {e}")
            return UploadResult(success=False, error=f"Upload failed: {e}")

        return UploadResult(success=True, public_url=self.public_url(s3_key))

    async def reupload_images(self, image_urls: list[str], source_url: str) -> list[str]:
        """
        Re-host images concurrently, keeping order.

        Any image that fails to upload keeps its original URL. With S3
        disabled the input list is returned unchanged.
        """
        if not image_urls or not self.is_enabled:
            return list(image_urls)

        source_hash = hashlib.sha256(source_url.encode("utf-8")).hexdigest()[:16]
        print(f"📤 Re-uploading {len(image_urls)} image(s) to S3...")

        results = await asyncio.gather(*[
            self.upload_from_url(url, f"imports/{source_hash}/{index}")
            for index, url in enumerate(image_urls)
        ], return_exceptions=True)

        rehosted = []
        for original, result in zip(image_urls, results):
            if isinstance(result, UploadResult) and result.success and result.public_url:
                rehosted.append(result.public_url)
            else:
                error = result.error if isinstance(result, UploadResult) else repr(result)
                print(f"⚠️ Keeping original image URL ({error})")
                rehosted.append(original)
        return rehosted


# Singleton instance
storage_service = StorageService()
