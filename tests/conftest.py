"""Pytest fixtures for pipeline and CDK construct tests."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aws_cdk as cdk
import pytest


@pytest.fixture
def app() -> cdk.App:
  """Create a CDK App for testing."""
  return cdk.App()


@pytest.fixture
def stack(app: cdk.App) -> cdk.Stack:
  """Create a CDK Stack for testing."""
  return cdk.Stack(
    app, "TestStack", env=cdk.Environment(account="123456789012", region="us-east-1")
  )


class FakePaginator:
  """Pages through the fake bucket listing, two keys per page."""

  def __init__(self, client: "FakeS3Client") -> None:
    self.client = client

  def paginate(self, Bucket: str, **_kwargs: Any) -> Any:
    keys = sorted(self.client.objects)
    if not keys:
      yield {"KeyCount": 0}
      return
    for start in range(0, len(keys), 2):
      yield {
        "Contents": [
          {
            "Key": key,
            "Size": len(self.client.objects[key]["Body"]),
            "LastModified": self.client.objects[key]["LastModified"],
          }
          for key in keys[start : start + 2]
        ]
      }


class FakeS3Client:
  """In-memory S3 client covering the calls the pipeline makes."""

  def __init__(self) -> None:
    self.objects: dict[str, dict[str, Any]] = {}
    self.calls: list[tuple[str, dict[str, Any]]] = []
    self.delete_errors: list[dict[str, str]] = []

  def put(self, key: str, body: bytes, last_modified: datetime | None = None) -> None:
    """Seed an object directly."""
    self.objects[key] = {
      "Body": body,
      "LastModified": last_modified or datetime.now(UTC),
      "ContentType": "binary/octet-stream",
      "CacheControl": None,
    }

  def get_paginator(self, name: str) -> FakePaginator:
    assert name == "list_objects_v2"
    return FakePaginator(self)

  def upload_file(
    self, Filename: str, Bucket: str, Key: str, ExtraArgs: dict[str, Any] | None = None
  ) -> None:
    extra = ExtraArgs or {}
    self.calls.append(("upload_file", {"Key": Key, **extra}))
    self.objects[Key] = {
      "Body": Path(Filename).read_bytes(),
      "LastModified": datetime.now(UTC),
      "ContentType": extra.get("ContentType"),
      "CacheControl": extra.get("CacheControl"),
    }

  def delete_objects(self, Bucket: str, Delete: dict[str, Any]) -> dict[str, Any]:
    keys = [o["Key"] for o in Delete["Objects"]]
    self.calls.append(("delete_objects", {"Keys": keys}))
    if self.delete_errors:
      return {"Errors": self.delete_errors}
    for key in keys:
      self.objects.pop(key, None)
    return {"Deleted": [{"Key": k} for k in keys]}

  def copy_object(self, **kwargs: Any) -> dict[str, Any]:
    self.calls.append(("copy_object", kwargs))
    obj = self.objects[kwargs["CopySource"]["Key"]]
    obj["ContentType"] = kwargs.get("ContentType")
    obj["CacheControl"] = kwargs.get("CacheControl")
    return {}

  def put_public_access_block(self, **kwargs: Any) -> None:
    self.calls.append(("put_public_access_block", kwargs))

  def put_bucket_website(self, **kwargs: Any) -> None:
    self.calls.append(("put_bucket_website", kwargs))

  def put_bucket_policy(self, **kwargs: Any) -> None:
    self.calls.append(("put_bucket_policy", kwargs))

  def call_names(self) -> list[str]:
    return [name for name, _ in self.calls]


class FakeCloudFrontClient:
  """Records invalidation requests."""

  def __init__(self) -> None:
    self.invalidations: list[dict[str, Any]] = []

  def create_invalidation(self, DistributionId: str, InvalidationBatch: dict[str, Any]) -> dict:
    self.invalidations.append(
      {"DistributionId": DistributionId, "InvalidationBatch": InvalidationBatch}
    )
    return {"Invalidation": {"Id": f"I{len(self.invalidations)}", "Status": "InProgress"}}


@pytest.fixture
def fake_s3() -> FakeS3Client:
  """Create a fake S3 client."""
  return FakeS3Client()


@pytest.fixture
def fake_cloudfront() -> FakeCloudFrontClient:
  """Create a fake CloudFront client."""
  return FakeCloudFrontClient()


VALID_HTML = "<!DOCTYPE html>\n<html><head><title>Home</title></head><body></body></html>\n"


@pytest.fixture
def site(tmp_path: Path) -> Path:
  """A checked-out static site workspace."""
  root = tmp_path / "site"
  files = {
    "index.html": VALID_HTML,
    "about/index.html": VALID_HTML,
    "css/site.css": "body { margin: 0; }\n",
    "js/app.js": "console.log('hi');\n",
    "img/logo.svg": "<svg></svg>\n",
    "sitemap.xml": "<urlset></urlset>\n",
    "manifest.json": "{}\n",
    "Jenkinsfile": "pipeline {}\n",
    "README.md": "# Site\n",
    ".gitignore": "dist/\n",
    ".git/HEAD": "ref: refs/heads/main\n",
    ".git/config": "[core]\n",
  }
  for name, content in files.items():
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
  return root
