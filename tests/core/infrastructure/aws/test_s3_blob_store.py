"""Tests for S3BlobStore with a stub adapter and with moto-backed S3."""

import os
from typing import Any

import pytest
from botocore.exceptions import ClientError

from image_manager.infrastructure.adapters.s3_adapter import S3Adapter
from image_manager.infrastructure.aws.s3_blob_store import S3BlobStore
from image_manager.models.errors import StorageDeleteError, StorageError, StorageWriteError
from image_manager.utils.constants import ENV_IMAGE_S3_BUCKET_NAME


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class DummyS3Adapter:
    """Configurable S3 adapter test double."""

    def __init__(
        self,
        *,
        put_exc: Exception | None = None,
        head_exc: Exception | None = None,
        delete_exc: Exception | None = None,
        presign_exc: Exception | None = None,
    ) -> None:
        self._put_exc = put_exc
        self._head_exc = head_exc
        self._delete_exc = delete_exc
        self._presign_exc = presign_exc
        self.put_calls: list[dict[str, Any]] = []
        self.presign_calls: list[dict[str, Any]] = []

    @property
    def bucket(self) -> str:
        return "test-bucket"

    def put_object(self, **kwargs: Any) -> None:
        if self._put_exc:
            raise self._put_exc
        self.put_calls.append(kwargs)

    def head_object(self, **_: Any) -> dict[str, Any]:
        if self._head_exc:
            raise self._head_exc
        return {"ContentLength": 1}

    def delete_object(self, **_: Any) -> None:
        if self._delete_exc:
            raise self._delete_exc

    def generate_presigned_url(self, **kwargs: Any) -> str:
        if self._presign_exc:
            raise self._presign_exc
        self.presign_calls.append(kwargs)
        return "https://example.com/presigned"


class TestS3BlobStorePut:
    @pytest.mark.parametrize("visibility,acl", [("public", "public-read"), ("private", "private")])
    def test_visibility_maps_to_acl(self, visibility: str, acl: str) -> None:
        adapter = DummyS3Adapter()
        store = S3BlobStore(adapter)

        store.put("a.webp", b"data", visibility=visibility, content_type="image/webp")

        assert adapter.put_calls == [
            {"key": "a.webp", "body": b"data", "content_type": "image/webp", "acl": acl}
        ]

    def test_acl_disabled(self) -> None:
        adapter = DummyS3Adapter()
        store = S3BlobStore(adapter, acl_enabled=False)

        store.put("a.webp", b"data", visibility="public")

        assert adapter.put_calls[0]["acl"] is None

    def test_put_client_error(self) -> None:
        store = S3BlobStore(DummyS3Adapter(put_exc=_client_error("AccessDenied", "PutObject")))

        with pytest.raises(StorageWriteError) as exc:
            store.put("a.webp", b"data")

        assert exc.value.details == {"path": "a.webp"}

    def test_put_unexpected_exception(self) -> None:
        store = S3BlobStore(DummyS3Adapter(put_exc=Exception("boom")))

        with pytest.raises(StorageWriteError):
            store.put("a.webp", b"data")


class TestS3BlobStoreExists:
    def test_exists(self) -> None:
        assert S3BlobStore(DummyS3Adapter()).exists("a.webp") is True

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_missing_codes(self, code: str) -> None:
        store = S3BlobStore(DummyS3Adapter(head_exc=_client_error(code, "HeadObject")))

        assert store.exists("a.webp") is False

    def test_other_client_error(self) -> None:
        store = S3BlobStore(DummyS3Adapter(head_exc=_client_error("403", "HeadObject")))

        with pytest.raises(StorageError):
            store.exists("a.webp")


class TestS3BlobStoreDelete:
    def test_delete_success(self) -> None:
        S3BlobStore(DummyS3Adapter()).delete("a.webp")

    def test_delete_client_error(self) -> None:
        store = S3BlobStore(DummyS3Adapter(delete_exc=_client_error("InternalError", "DeleteObject")))

        with pytest.raises(StorageDeleteError):
            store.delete("a.webp")


class TestS3BlobStoreUrl:
    def test_base_url(self) -> None:
        adapter = DummyS3Adapter()
        store = S3BlobStore(adapter, base_url="https://cdn.example.com/")

        assert store.url("uploads/a.webp") == "https://cdn.example.com/uploads/a.webp"
        assert adapter.presign_calls == []

    def test_presigned_url(self) -> None:
        adapter = DummyS3Adapter()
        store = S3BlobStore(adapter, url_expires_in=60)

        assert store.url("uploads/a.webp") == "https://example.com/presigned"
        assert adapter.presign_calls == [
            {"method": "get_object", "params": {"Key": "uploads/a.webp"}, "expires_in": 60}
        ]

    def test_presigned_url_failure(self) -> None:
        store = S3BlobStore(DummyS3Adapter(presign_exc=Exception("boom")))

        with pytest.raises(StorageError) as exc:
            store.url("uploads/a.webp")

        assert exc.value.error_code == "PRESIGNED_URL_FAILED"


class TestS3BlobStoreWithMoto:
    def test_missing_bucket_env(self, monkeypatch) -> None:
        monkeypatch.delenv(ENV_IMAGE_S3_BUCKET_NAME, raising=False)

        with pytest.raises(RuntimeError):
            S3Adapter()

    def test_put_exists_delete_roundtrip(self, s3_bucket) -> None:
        store = S3BlobStore(S3Adapter())
        key = "uploads/user/avatar/original/a.webp"

        store.put(key, b"image-bytes", visibility="public", content_type="image/webp")

        assert store.exists(key) is True
        obj = s3_bucket.get_object(Bucket=os.getenv(ENV_IMAGE_S3_BUCKET_NAME), Key=key)
        assert obj["ContentType"] == "image/webp"
        assert obj["Body"].read() == b"image-bytes"

        store.delete(key)

        assert store.exists(key) is False

    def test_presigned_url_contains_key(self, s3_bucket) -> None:
        url = S3BlobStore(S3Adapter()).url("uploads/a.webp")

        assert url.startswith("https://")
        assert "uploads/a.webp" in url
