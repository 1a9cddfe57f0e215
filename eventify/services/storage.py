from __future__ import annotations

import asyncio
import os
import pathlib
import re
from dataclasses import dataclass
from typing import Optional

import aiofiles
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

CERTIFICATES = "certificates"
OD_LETTERS = "od-letters"


@dataclass
class StorageResult:
    backend: str
    path: str
    size: int


def _sanitize_name(name: str) -> str:
    name = pathlib.PurePosixPath(name).name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name).strip("._") or "document"


def document_key(bucket: str, registration_id: int, filename: str) -> str:
    return f"{bucket}/{registration_id}/{_sanitize_name(filename)}"


class DocumentStorage:
    """Bucket for generated certificates and OD letters, addressed by key."""

    backend_name = "base"

    async def save(self, key: str, data: bytes, content_type: str = "application/pdf") -> StorageResult:  # pragma: no cover
        raise NotImplementedError

    async def signed_url(self, key: str) -> Optional[str]:
        return None


class LocalDocumentStorage(DocumentStorage):
    backend_name = "local"

    def __init__(self, base_path: Optional[str] = None) -> None:
        base_path = base_path or os.getenv("DOCUMENT_LOCAL_PATH", "storage/documents")
        self.base_path = pathlib.Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> pathlib.Path:
        candidate = (self.base_path / key).resolve()
        if not candidate.is_relative_to(self.base_path):
            raise HTTPException(status_code=400, detail="Invalid document path")
        return candidate

    async def save(self, key: str, data: bytes, content_type: str = "application/pdf") -> StorageResult:
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as buffer:
            await buffer.write(data)
        return StorageResult(backend=self.backend_name, path=key, size=len(data))

    def get_file_path(self, key: str) -> pathlib.Path:
        path = self._resolve(key)
        if not path.exists():
            raise FileNotFoundError(path)
        return path


class S3DocumentStorage(DocumentStorage):
    backend_name = "s3"

    def __init__(self) -> None:
        bucket = os.getenv("DOCUMENT_S3_BUCKET")
        if not bucket:
            raise RuntimeError("DOCUMENT_S3_BUCKET must be set for S3 storage")
        self.bucket = bucket
        self.client = boto3.client(
            "s3",
            endpoint_url=os.getenv("DOCUMENT_S3_ENDPOINT"),
            region_name=os.getenv("DOCUMENT_S3_REGION"),
        )
        self.ttl = int(os.getenv("DOCUMENT_S3_URL_TTL", "900"))

    async def save(self, key: str, data: bytes, content_type: str = "application/pdf") -> StorageResult:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover
            raise HTTPException(status_code=500, detail=f"Failed to store document: {exc}") from exc
        return StorageResult(backend=self.backend_name, path=key, size=len(data))

    async def signed_url(self, key: str) -> Optional[str]:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self.ttl,
        )


_storage: Optional[DocumentStorage] = None


def get_document_storage() -> DocumentStorage:
    global _storage
    if _storage is not None:
        return _storage

    backend = os.getenv("DOCUMENT_STORAGE", "local").lower()
    if backend == "local":
        _storage = LocalDocumentStorage()
    elif backend == "s3":
        _storage = S3DocumentStorage()
    else:  # pragma: no cover - configuration error
        raise RuntimeError(f"Unsupported DOCUMENT_STORAGE backend: {backend}")
    return _storage
