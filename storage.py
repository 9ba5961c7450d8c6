"""
Image storage for SREF previews.

Uploads go to Cloudflare R2 (S3-compatible, via boto3) when R2 credentials are
configured, otherwise to the local upload folder served under ``/uploads``.
Files are named after the SHA256 of their content, so re-uploading the same
image returns the existing URL.
"""

import hashlib
import logging
import os
from typing import Optional

import boto3
from botocore.exceptions import ClientError
import config

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "avif"}


_r2_client = None


def r2_endpoint() -> str:
    return f"https://{config.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"


def get_r2_client():
    """Shared S3 client for the SREF image bucket, or None when R2 is not configured."""
    global _r2_client
    if not config.R2_ENABLED:
        return None

    if _r2_client is None:
        logger.info("Connecting to R2 bucket %s", config.R2_BUCKET_NAME)
        _r2_client = boto3.client(
            "s3",
            endpoint_url=r2_endpoint(),
            aws_access_key_id=config.R2_ACCESS_KEY_ID,
            aws_secret_access_key=config.R2_SECRET_ACCESS_KEY,
            region_name="auto",
        )
    return _r2_client


def content_filename(file_content: bytes, original_name: str) -> str:
    extension = original_name.rsplit(".", 1)[-1].lower() if "." in original_name else ""
    if extension not in ALLOWED_EXTENSIONS:
        raise ValueError(f"Unsupported image type: .{extension or '?'}")
    return f"{hashlib.sha256(file_content).hexdigest()}.{extension}"


def upload_to_r2(file_content: bytes, filename: str, content_type: str = "image/jpeg") -> Optional[str]:
    """
    Upload a file to Cloudflare R2.

    Returns the public URL of the uploaded file, or None if R2 is disabled or
    the upload fails.
    """
    client = get_r2_client()
    if not client:
        return None

    try:
        client.put_object(
            Bucket=config.R2_BUCKET_NAME,
            Key=filename,
            Body=file_content,
            ContentType=content_type
        )
    except ClientError as e:
        logger.error("R2 upload error for %s: %s", filename, e)
        return None

    public_url = config.R2_PUBLIC_URL.rstrip('/')
    return f"{public_url}/{filename}"


def save_locally(file_content: bytes, filename: str) -> str:
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    file_location = os.path.join(config.UPLOAD_DIR, filename)
    if not os.path.exists(file_location):
        with open(file_location, "wb") as file_object:
            file_object.write(file_content)
    return f"/uploads/{filename}"


def store_image(file_content: bytes, original_name: str, content_type: str = "image/jpeg") -> str:
    """Store an image and return the URL it is served from."""
    filename = content_filename(file_content, original_name)
    if config.R2_ENABLED:
        url = upload_to_r2(file_content, filename, content_type)
        if url:
            return url
        logger.warning("Falling back to local storage for %s", filename)
    return save_locally(file_content, filename)
