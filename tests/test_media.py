import asyncio

import pytest
from fastapi import HTTPException

from app.config import settings
from app.core.uploads import IncomingFile
from app.modules.media.s3_storage import S3Storage
from app.modules.media.service import MediaService


class _FakeBucket:
    def __init__(self):
        self.objects = {}
        self.removed = []

    def upload(self, path, file, file_options=None):
        if file == b"boom":
            raise RuntimeError("storage unavailable")
        self.objects[path] = (file, file_options)
        return {"Key": path}

    def get_public_url(self, path):
        return f"https://project.supabase.co/storage/v1/object/public/media/{path}"

    def remove(self, paths):
        self.removed.extend(paths)
        for path in paths:
            self.objects.pop(path, None)
        return []


class _FakeStorage:
    def __init__(self):
        self.bucket = _FakeBucket()
        self.bucket_names = []

    def from_(self, name):
        self.bucket_names.append(name)
        return self.bucket


class _FakeStorageClient:
    def __init__(self):
        self.storage = _FakeStorage()


class _FakeS3Client:
    def __init__(self):
        self.put_calls = []
        self.deleted = []

    def put_object(self, Bucket, Key, Body, ContentType):
        self.put_calls.append((Bucket, Key, ContentType))

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://signed.example/{Params['Key']}?expires={ExpiresIn}"


def _png(name="photo.PNG", data=b"png-bytes"):
    return IncomingFile(filename=name, content_type="image/png", data=data)


@pytest.fixture
def no_s3(monkeypatch):
    monkeypatch.setattr(settings, "aws_access_key_id", None)
    monkeypatch.setattr(settings, "s3_bucket_name", None)


@pytest.fixture
def s3_settings(monkeypatch):
    monkeypatch.setattr(settings, "aws_access_key_id", "key")
    monkeypatch.setattr(settings, "aws_secret_access_key", "secret")
    monkeypatch.setattr(settings, "s3_bucket_name", "social-media")
    monkeypatch.setattr(settings, "aws_region", "eu-west-1")


def test_build_key_keeps_lowercased_extension():
    key = MediaService.build_key("images", "Holiday.JPG")
    assert key.startswith("images/")
    assert key.endswith(".jpg")


def test_supabase_storage_upload_and_delete(no_s3):
    client = _FakeStorageClient()
    service = MediaService(client)

    asset = service.upload(_png(), "images", "image")

    assert asset["public_id"].startswith("images/") and asset["public_id"].endswith(".png")
    assert asset["url"].endswith(asset["public_id"])
    assert asset["secure_url"].startswith("https://")
    assert asset["resource_type"] == "image"
    assert client.storage.bucket_names[0] == settings.media_bucket
    assert service.delete(asset) is True
    assert client.storage.bucket.removed == [asset["public_id"]]


def test_upload_many_runs_whole_batch(no_s3):
    client = _FakeStorageClient()
    service = MediaService(client)

    assets = asyncio.run(service.upload_many([_png("a.png"), _png("b.png")], "images", "image"))

    assert len(assets) == 2
    assert set(client.storage.bucket.objects) == {a["public_id"] for a in assets}


def test_upload_many_failure_removes_uploaded_assets(no_s3):
    client = _FakeStorageClient()
    service = MediaService(client)

    with pytest.raises(HTTPException) as exc:
        asyncio.run(service.upload_many([_png("a.png"), _png("b.png", b"boom")], "images", "image"))

    assert exc.value.status_code == 500
    assert client.storage.bucket.objects == {}
    assert len(client.storage.bucket.removed) == 1


def test_delete_without_public_id_is_noop(no_s3):
    service = MediaService(_FakeStorageClient())
    assert service.delete({}) is False
    assert asyncio.run(service.delete_many([])) == 0


def test_s3_backend(s3_settings):
    s3_client = _FakeS3Client()
    service = MediaService(None, s3_storage=S3Storage(client=s3_client))

    asset = service.upload(_png(), "videos", "video")

    assert s3_client.put_calls == [("social-media", asset["public_id"], "image/png")]
    assert asset["url"] == f"https://social-media.s3.eu-west-1.amazonaws.com/{asset['public_id']}"
    assert service.url_for(asset["public_id"]).startswith(f"https://signed.example/{asset['public_id']}")
    assert service.delete(asset) is True
    assert s3_client.deleted == [asset["public_id"]]


def test_s3_storage_requires_configuration(no_s3):
    with pytest.raises(ValueError):
        S3Storage(client=_FakeS3Client())
