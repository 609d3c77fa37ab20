"""Deployment pipeline for static websites hosted on S3 and CloudFront."""

from .config import PipelineConfig
from .exceptions import ConfigError, DeployError, MissingEntryFileError, StageError
from .pipeline import Pipeline, PipelineResult, build_pipeline

__all__ = [
  "ConfigError",
  "DeployError",
  "MissingEntryFileError",
  "Pipeline",
  "PipelineConfig",
  "PipelineResult",
  "StageError",
  "build_pipeline",
]
