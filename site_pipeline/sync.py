"""Directory to bucket synchronisation with ``aws s3 sync --delete`` semantics."""

import fnmatch
import logging
import mimetypes
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .exceptions import DeployError

logger = logging.getLogger(__name__)

INCLUDE = "include"
EXCLUDE = "exclude"

# delete_objects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


@dataclass(frozen=True)
class FilterRule:
  """An include or exclude pattern, matched against the relative key."""

  action: str
  pattern: str

  def __post_init__(self) -> None:
    if self.action not in (INCLUDE, EXCLUDE):
      raise ValueError(f"Unknown filter action: {self.action}")


def exclude(*patterns: str) -> list[FilterRule]:
  return [FilterRule(EXCLUDE, p) for p in patterns]


def include(*patterns: str) -> list[FilterRule]:
  return [FilterRule(INCLUDE, p) for p in patterns]


def is_selected(key: str, rules: Sequence[FilterRule]) -> bool:
  """Apply filter rules in order; everything is selected until a rule says otherwise.

  The last matching rule wins.
  """
  selected = True
  for rule in rules:
    if fnmatch.fnmatchcase(key, rule.pattern):
      selected = rule.action == INCLUDE
  return selected


def guess_content_type(path: Path | str) -> str:
  content_type, _ = mimetypes.guess_type(str(path))
  return content_type or "application/octet-stream"


@dataclass
class SyncResult:
  """Keys touched by one sync pass."""

  uploaded: list[str] = field(default_factory=list)
  deleted: list[str] = field(default_factory=list)
  unchanged: list[str] = field(default_factory=list)

  def __add__(self, other: "SyncResult") -> "SyncResult":
    return SyncResult(
      uploaded=self.uploaded + other.uploaded,
      deleted=self.deleted + other.deleted,
      unchanged=self.unchanged + other.unchanged,
    )


class S3Sync:
  """Synchronise a local directory into an S3 bucket."""

  def __init__(self, bucket: str, s3_client: Any, dry_run: bool = False) -> None:
    self.bucket = bucket
    self.s3 = s3_client
    self.dry_run = dry_run

  def list_remote(self, rules: Sequence[FilterRule] = ()) -> dict[str, dict[str, Any]]:
    """List objects in the bucket that pass the filters, keyed by object key."""
    objects: dict[str, dict[str, Any]] = {}
    paginator = self.s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=self.bucket):
      for obj in page.get("Contents", []):
        key = obj["Key"]
        # Skip folder placeholders
        if key.endswith("/") or not is_selected(key, rules):
          continue
        objects[key] = obj
    return objects

  @staticmethod
  def list_local(source_dir: Path, rules: Sequence[FilterRule] = ()) -> dict[str, Path]:
    """List files below ``source_dir`` that pass the filters."""
    files: dict[str, Path] = {}
    for path in sorted(source_dir.rglob("*")):
      if not path.is_file():
        continue
      key = path.relative_to(source_dir).as_posix()
      if is_selected(key, rules):
        files[key] = path
    return files

  @staticmethod
  def needs_upload(path: Path, remote: dict[str, Any] | None) -> bool:
    """Upload when missing remotely, the size differs, or the local copy is newer."""
    if remote is None:
      return True
    stat = path.stat()
    if stat.st_size != remote["Size"]:
      return True
    local_mtime = datetime.fromtimestamp(stat.st_mtime, tz=UTC)
    return local_mtime > remote["LastModified"]

  def sync(
    self,
    source_dir: Path,
    *,
    rules: Sequence[FilterRule] = (),
    cache_control: str | None = None,
    delete: bool = True,
  ) -> SyncResult:
    """Upload new and changed files, then delete remote keys with no local file."""
    local = self.list_local(source_dir, rules)
    remote = self.list_remote(rules)
    result = SyncResult()

    for key, path in local.items():
      if self.needs_upload(path, remote.get(key)):
        self._upload(path, key, cache_control)
        result.uploaded.append(key)
      else:
        result.unchanged.append(key)

    if delete:
      stale = sorted(set(remote) - set(local))
      self._delete(stale)
      result.deleted.extend(stale)

    logger.info(
      "Sync to s3://%s: %d uploaded, %d deleted, %d unchanged",
      self.bucket,
      len(result.uploaded),
      len(result.deleted),
      len(result.unchanged),
    )
    return result

  def _upload(self, path: Path, key: str, cache_control: str | None) -> None:
    extra_args = {"ContentType": guess_content_type(path)}
    if cache_control:
      extra_args["CacheControl"] = cache_control

    if self.dry_run:
      logger.info("(dry run) upload: %s -> s3://%s/%s", path, self.bucket, key)
      return
    logger.debug("upload: %s -> s3://%s/%s", path, self.bucket, key)
    self.s3.upload_file(str(path), self.bucket, key, ExtraArgs=extra_args)

  def _delete(self, keys: Iterable[str]) -> None:
    keys = list(keys)
    if self.dry_run:
      for key in keys:
        logger.info("(dry run) delete: s3://%s/%s", self.bucket, key)
      return

    for start in range(0, len(keys), DELETE_BATCH_SIZE):
      batch = keys[start : start + DELETE_BATCH_SIZE]
      response = self.s3.delete_objects(
        Bucket=self.bucket,
        Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
      )
      errors = response.get("Errors", [])
      if errors:
        failed = ", ".join(f"{e['Key']} ({e.get('Code', 'Error')})" for e in errors)
        raise DeployError(f"Failed to delete objects from {self.bucket}: {failed}")
      for key in batch:
        logger.debug("delete: s3://%s/%s", self.bucket, key)

  def fix_content_types(
    self,
    suffix: str = ".html",
    content_type: str = "text/html",
    cache_control: str | None = None,
  ) -> list[str]:
    """Rewrite metadata of every object ending in ``suffix`` in place."""
    keys = [key for key in self.list_remote() if key.endswith(suffix)]

    for key in keys:
      if self.dry_run:
        logger.info("(dry run) set Content-Type %s on %s", content_type, key)
        continue
      kwargs: dict[str, Any] = {
        "Bucket": self.bucket,
        "Key": key,
        "CopySource": {"Bucket": self.bucket, "Key": key},
        "MetadataDirective": "REPLACE",
        "ContentType": content_type,
      }
      if cache_control:
        kwargs["CacheControl"] = cache_control
      self.s3.copy_object(**kwargs)

    logger.info("Set Content-Type %s on %d objects", content_type, len(keys))
    return keys


def two_pass_sync(
  syncer: S3Sync,
  source_dir: Path,
  *,
  no_cache_patterns: Sequence[str],
  asset_cache_control: str,
  html_cache_control: str,
) -> tuple[SyncResult, SyncResult]:
  """Sync long-cached assets first, then the no-cache documents."""
  assets = syncer.sync(
    source_dir,
    rules=exclude(*no_cache_patterns),
    cache_control=asset_cache_control,
  )
  documents = syncer.sync(
    source_dir,
    rules=exclude("*") + include(*no_cache_patterns),
    cache_control=html_cache_control,
  )
  return assets, documents
