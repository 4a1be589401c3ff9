import os
from pathlib import Path
from typing import Tuple

import boto3
from django.conf import settings


def _store_local(filename: str, payload: bytes) -> Tuple[str, str]:
    base_path: Path = Path(settings.REPORT_STORAGE_PATH)
    base_path.mkdir(parents=True, exist_ok=True)
    dest = base_path / filename
    dest.write_bytes(payload)
    url = os.path.join(settings.REPORT_BASE_URL, filename)
    return url, str(dest)


def _store_s3(filename: str, payload: bytes, content_type: str) -> Tuple[str, str]:
    session = boto3.session.Session(
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=getattr(settings, "AWS_REGION", None),
    )
    client = session.client("s3", endpoint_url=settings.AWS_S3_ENDPOINT_URL)
    client.put_object(Bucket=settings.AWS_STORAGE_BUCKET_NAME, Key=filename, Body=payload, ContentType=content_type)
    base_url = getattr(settings, "REPORT_BASE_URL", None)
    if base_url:
        url = f"{base_url.rstrip('/')}/{filename}"
    else:
        endpoint = (settings.AWS_S3_ENDPOINT_URL or "").rstrip("/")
        url = f"{endpoint}/{settings.AWS_STORAGE_BUCKET_NAME}/{filename}"
    return url, filename


def store_report(filename: str, payload: bytes, content_type: str = "text/csv") -> Tuple[str, str]:
    """Returns (url, path_or_key)."""
    if getattr(settings, "REPORT_STORAGE", "local") == "s3":
        return _store_s3(filename, payload, content_type)
    return _store_local(filename, payload)
