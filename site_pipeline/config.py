"""Configuration loader for the deployment pipeline."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

DEFAULT_CONFIG_FILE = "deploy.yaml"

# Names never copied into the staging directory
DEFAULT_EXCLUDE = [".git", ".gitignore", ".gitattributes", "Jenkinsfile", "README.md"]

# Synced with no-cache headers in the second pass
DEFAULT_NO_CACHE_PATTERNS = ["*.html", "*.xml", "*.json"]

# Trigger-time parameters, as the CI host exports them
ENV_VARS = {
  "S3_BUCKET": "bucket",
  "AWS_REGION": "region",
  "ENABLE_CLOUDFRONT_INVALIDATION": "enable_invalidation",
  "CLOUDFRONT_DISTRIBUTION_ID": "distribution_id",
  "SLACK_WEBHOOK_URL": "slack_webhook_url",
}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def parse_bool(value: Any, name: str = "value") -> bool:
  """Parse a boolean from YAML or an environment string."""
  if isinstance(value, bool):
    return value
  text = str(value).strip().lower()
  if text in _TRUE:
    return True
  if text in _FALSE:
    return False
  raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _as_list(value: Any, name: str) -> list[str]:
  if isinstance(value, str):
    return [value]
  if isinstance(value, list | tuple):
    return [str(v) for v in value]
  raise ConfigError(f"{name} must be a string or a list of strings")


@dataclass
class PipelineConfig:
  """Settings for a single pipeline run."""

  bucket: str
  region: str = "us-east-1"
  enable_invalidation: bool = False
  distribution_id: str = ""
  slack_webhook_url: str | None = None
  source_dir: Path = field(default_factory=lambda: Path("."))
  staging_dir: str = "dist"
  entry_file: str = "index.html"
  index_document: str = "index.html"
  error_document: str = "index.html"
  exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
  asset_cache_control: str = "public, max-age=31536000"
  html_cache_control: str = "no-cache, no-store, must-revalidate"
  no_cache_patterns: list[str] = field(
    default_factory=lambda: list(DEFAULT_NO_CACHE_PATTERNS)
  )
  invalidation_paths: list[str] = field(default_factory=lambda: ["/*"])
  keep_staging: bool = False
  dry_run: bool = False
  config_path: Path | None = None

  def __post_init__(self) -> None:
    # The staging dir is wiped before every copy
    source = Path(self.source_dir).resolve()
    staging = self.staging_path
    if staging == source or staging in source.parents:
      raise ConfigError(
        f"Staging directory {staging} must not be the workspace or contain it"
      )

  @property
  def staging_path(self) -> Path:
    """Absolute location of the staging directory."""
    return (Path(self.source_dir) / self.staging_dir).resolve()

  def staging_skip_paths(self) -> list[Path]:
    """Exact paths left out of the staging copy on top of ``exclude``.

    The staging directory itself is always pruned by ``prepare_staging``.
    """
    if self.config_path is None:
      return []
    return [self.config_path.resolve()]

  @classmethod
  def from_dict(cls, data: Mapping[str, Any]) -> "PipelineConfig":
    """Build and validate a config from merged settings."""
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
      raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    bucket = str(data.get("bucket") or "").strip()
    if not bucket:
      raise ConfigError("S3 bucket name is required (S3_BUCKET or --bucket)")

    kwargs: dict[str, Any] = {"bucket": bucket}
    for name in ("region", "staging_dir", "entry_file", "index_document",
                 "error_document", "asset_cache_control", "html_cache_control"):
      if data.get(name) is not None:
        kwargs[name] = str(data[name]).strip()

    for name in ("enable_invalidation", "keep_staging", "dry_run"):
      if data.get(name) is not None:
        kwargs[name] = parse_bool(data[name], name)

    for name in ("exclude", "no_cache_patterns", "invalidation_paths"):
      if data.get(name) is not None:
        kwargs[name] = _as_list(data[name], name)

    kwargs["distribution_id"] = str(data.get("distribution_id") or "").strip()
    kwargs["slack_webhook_url"] = data.get("slack_webhook_url") or None
    if data.get("source_dir") is not None:
      kwargs["source_dir"] = Path(data["source_dir"])
    if data.get("config_path") is not None:
      kwargs["config_path"] = Path(data["config_path"])

    if not kwargs.get("region", "us-east-1"):
      raise ConfigError("AWS region must not be empty")

    return cls(**kwargs)

  @staticmethod
  def read_yaml(path: Path | str) -> dict[str, Any]:
    """Read settings from a YAML file, merging ``defaults`` under ``pipeline``."""
    with open(path) as f:
      data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
      raise ConfigError(f"{path}: expected a mapping at the top level")

    defaults = data.get("defaults") or {}
    pipeline = data.get("pipeline") or {}
    return {**defaults, **pipeline}

  @classmethod
  def load(
    cls,
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
  ) -> "PipelineConfig":
    """Resolve configuration from file, environment and explicit overrides.

    Precedence, highest first: overrides, environment, YAML file, defaults.
    Without an explicit path, ``deploy.yaml`` in the working directory is
    used when it exists.
    """
    environ = os.environ if environ is None else environ

    merged: dict[str, Any] = {}
    path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_FILE)
    if path.exists():
      merged.update(cls.read_yaml(path))
      merged["config_path"] = path
    elif config_path:
      raise ConfigError(f"Config file not found: {path}")

    for var, name in ENV_VARS.items():
      # Empty CI parameters count as unset
      value = environ.get(var)
      if value:
        merged[name] = value

    for name, value in (overrides or {}).items():
      if value is not None:
        merged[name] = value

    return cls.from_dict(merged)
