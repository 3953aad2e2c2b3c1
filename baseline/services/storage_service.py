"""Object storage for pitch deck files and slide images.

Talks to S3 through boto3. Any S3-compatible endpoint works when
S3_ENDPOINT_URL is set.
"""
from __future__ import annotations

import json
import logging
import os
import re
import time
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from baseline.errors import StorageError

logger = logging.getLogger(__name__)

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_EXISTING_BUCKET_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def sanitize_object_name(filename: str) -> str:
    return re.sub(r"[^a-z0-9.\-_]", "_", (filename or "").lower())


def upload_object_name(filename: str) -> str:
    """Unique key for an uploaded deck file: ``<ms>-<random>-<sanitized name>``"""
    return f"{int(time.time() * 1000)}-{os.urandom(4).hex()}-{sanitize_object_name(filename)}"


def slide_object_name(page_number: int) -> str:
    return f"slides/slide-{page_number}-{int(time.time() * 1000)}-{os.urandom(3).hex()}.png"


class ObjectStorage:
    def __init__(self, bucket: str, region: Optional[str] = None, endpoint_url: Optional[str] = None,
                 public_url: Optional[str] = None, client: Any = None):
        self.bucket = bucket
        self.region = region or None
        self.endpoint_url = endpoint_url or None
        self.public_base = (public_url or "").rstrip("/")
        self._client = client
        self._bucket_ready = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ObjectStorage":
        return cls(
            bucket=config.get("PITCH_DECK_BUCKET") or "pitch-deck-files",
            region=(config.get("AWS_REGION") or "").strip(),
            endpoint_url=(config.get("S3_ENDPOINT_URL") or "").strip(),
            public_url=(config.get("STORAGE_PUBLIC_URL") or "").strip(),
        )

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self.region, endpoint_url=self.endpoint_url)
        return self._client

    def ensure_bucket(self) -> None:
        """Create the bucket with a public-read policy if it does not exist yet"""
        if self._bucket_ready:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code not in _MISSING_BUCKET_CODES:
                raise StorageError(f"Could not inspect bucket {self.bucket}: {e}") from e
            self._create_bucket()
        except BotoCoreError as e:
            raise StorageError(f"Could not reach storage: {e}") from e
        self._bucket_ready = True

    def _create_bucket(self) -> None:
        args: Dict[str, Any] = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1" and not self.endpoint_url:
            args["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.client.create_bucket(**args)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code not in _EXISTING_BUCKET_CODES:
                raise StorageError(f"Bucket creation failed: {e}") from e
            return
        logger.info("Created storage bucket %s", self.bucket)
        policy = {
            "Version": "2012-10-17",
            "Statement": [{
                "Sid": "PublicRead",
                "Effect": "Allow",
                "Principal": "*",
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{self.bucket}/*"],
            }],
        }
        try:
            self.client.put_bucket_policy(Bucket=self.bucket, Policy=json.dumps(policy))
        except ClientError as e:
            raise StorageError(f"Could not make bucket public: {e}") from e

    def public_url(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base}/{self.bucket}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store an object and return its public URL"""
        self.ensure_bucket()
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload of {key} failed: {e}") from e
        return self.public_url(key)

    def delete(self, keys: Iterable[str]) -> List[str]:
        """Delete objects, returning the keys that could not be removed"""
        keys = [k for k in keys if k]
        if not keys:
            return []
        failed: List[str] = []
        for start in range(0, len(keys), 1000):
            batch = keys[start:start + 1000]
            try:
                resp = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                logger.warning("Storage delete failed for %d objects: %s", len(batch), e)
                failed.extend(batch)
                continue
            failed.extend(err.get("Key") for err in resp.get("Errors", []) if err.get("Key"))
        return failed
