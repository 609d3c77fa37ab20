"""Sequential stage runner and the static site deployment pipeline."""

import logging
import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import boto3

from .config import PipelineConfig
from .exceptions import DeployError, StageError
from .html_check import HtmlWarning, check_tree
from .invalidation import create_invalidation, should_invalidate
from .notify import SlackNotifier
from .staging import prepare_staging, remove_staging, validate_entry_file
from .sync import S3Sync, SyncResult, two_pass_sync
from .website import configure_website

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"
FAILED = "FAILED"
SKIPPED = "SKIPPED"
NOT_RUN = "NOT_RUN"


@dataclass
class StageResult:
  """Outcome of one stage."""

  name: str
  status: str = NOT_RUN
  duration: float = 0.0
  error: str | None = None


@dataclass
class PipelineResult:
  """Outcome of a pipeline run, filled in by the stages as they go."""

  stages: list[StageResult] = field(default_factory=list)
  revision: str | None = None
  staged_files: list[str] = field(default_factory=list)
  html_warnings: list[HtmlWarning] = field(default_factory=list)
  sync: SyncResult | None = None
  content_type_fixed: list[str] = field(default_factory=list)
  website_url: str | None = None
  invalidation_id: str | None = None
  failed_stage: str | None = None
  error: str | None = None
  exception: BaseException | None = field(default=None, repr=False)

  @property
  def succeeded(self) -> bool:
    return self.failed_stage is None

  def status_of(self, name: str) -> str:
    for stage in self.stages:
      if stage.name == name:
        return stage.status
    raise KeyError(name)

  def raise_for_status(self) -> None:
    """Raise ``StageError`` if a stage failed."""
    if self.failed_stage is None:
      return
    cause = self.exception or DeployError(self.error or "unknown error")
    raise StageError(self.failed_stage, cause) from cause


StageAction = Callable[[PipelineResult], None]
PostAction = Callable[[PipelineResult], Any]


@dataclass
class Stage:
  """A named step, optionally gated by a ``when`` predicate."""

  name: str
  action: StageAction
  when: Callable[[], bool] | None = None


class Pipeline:
  """Run stages in order, stopping at the first failure.

  Post actions run after the stages: ``on_success`` or ``on_failure``
  depending on the outcome, then ``always``.
  """

  def __init__(
    self,
    stages: Sequence[Stage],
    *,
    on_success: Sequence[PostAction] = (),
    on_failure: Sequence[PostAction] = (),
    always: Sequence[PostAction] = (),
  ) -> None:
    self.stages = list(stages)
    self.on_success = list(on_success)
    self.on_failure = list(on_failure)
    self.always = list(always)

  def run(self) -> PipelineResult:
    result = PipelineResult(stages=[StageResult(s.name) for s in self.stages])

    for stage, stage_result in zip(self.stages, result.stages, strict=True):
      if stage.when is not None and not stage.when():
        stage_result.status = SKIPPED
        logger.info("Stage '%s' skipped due to when conditional", stage.name)
        continue

      logger.info("[Pipeline] stage: %s", stage.name)
      started = time.monotonic()
      try:
        stage.action(result)
      except Exception as e:
        stage_result.status = FAILED
        stage_result.error = str(e)
        result.failed_stage = stage.name
        result.error = str(e)
        result.exception = e
        logger.error("Stage '%s' failed: %s", stage.name, e)
        break
      finally:
        stage_result.duration = time.monotonic() - started
      stage_result.status = SUCCESS

    hooks = self.on_success if result.succeeded else self.on_failure
    try:
      for hook in hooks:
        hook(result)
    finally:
      for hook in self.always:
        hook(result)

    return result


def git_revision(source_dir: Path) -> str | None:
  """Short commit hash of the checked-out workspace, if it is a git checkout."""
  if not (source_dir / ".git").exists():
    return None
  try:
    completed = subprocess.run(
      ["git", "rev-parse", "--short", "HEAD"],
      cwd=source_dir,
      capture_output=True,
      text=True,
      check=False,
    )
  except FileNotFoundError:
    logger.warning("git is not installed; revision unknown")
    return None
  if completed.returncode != 0:
    logger.warning("Could not read git revision: %s", completed.stderr.strip())
    return None
  return completed.stdout.strip() or None


def build_pipeline(
  config: PipelineConfig,
  *,
  s3_client: Any = None,
  cloudfront_client: Any = None,
  notifier: SlackNotifier | None = None,
) -> Pipeline:
  """Assemble the deployment stages for ``config``.

  AWS clients are created from the ambient credentials unless given.
  """
  source_dir = config.source_dir.resolve()
  staging_dir = config.staging_path
  s3 = s3_client or boto3.client("s3", region_name=config.region)
  syncer = S3Sync(config.bucket, s3, dry_run=config.dry_run)

  if notifier is None and config.slack_webhook_url:
    notifier = SlackNotifier(config.slack_webhook_url)

  def checkout(result: PipelineResult) -> None:
    if not source_dir.is_dir():
      raise DeployError(f"Workspace not found: {source_dir}")
    result.revision = git_revision(source_dir)
    logger.info("Workspace %s at revision %s", source_dir, result.revision or "unknown")

  def validate(result: PipelineResult) -> None:
    validate_entry_file(source_dir, config.entry_file)

  def prepare_files(result: PipelineResult) -> None:
    result.staged_files = prepare_staging(
      source_dir, staging_dir, config.exclude, config.staging_skip_paths()
    )

  def html_validation(result: PipelineResult) -> None:
    result.html_warnings = check_tree(staging_dir)

  def deploy(result: PipelineResult) -> None:
    assets, documents = two_pass_sync(
      syncer,
      staging_dir,
      no_cache_patterns=config.no_cache_patterns,
      asset_cache_control=config.asset_cache_control,
      html_cache_control=config.html_cache_control,
    )
    result.sync = assets + documents

  def fix_content_types(result: PipelineResult) -> None:
    result.content_type_fixed = syncer.fix_content_types(
      ".html", "text/html", cache_control=config.html_cache_control
    )

  def website(result: PipelineResult) -> None:
    result.website_url = configure_website(
      s3,
      config.bucket,
      config.region,
      index_document=config.index_document,
      error_document=config.error_document,
      dry_run=config.dry_run,
    )

  def invalidate(result: PipelineResult) -> None:
    client = cloudfront_client or boto3.client("cloudfront")
    result.invalidation_id = create_invalidation(
      client,
      config.distribution_id.strip(),
      config.invalidation_paths,
      dry_run=config.dry_run,
    )

  def cleanup(result: PipelineResult) -> None:
    if not config.keep_staging:
      remove_staging(staging_dir)

  on_success: list[PostAction] = []
  on_failure: list[PostAction] = []
  if notifier is not None:
    on_success.append(lambda result: notifier.notify_success(config, result))
    on_failure.append(lambda result: notifier.notify_failure(config, result))

  return Pipeline(
    [
      Stage("Checkout", checkout),
      Stage("Validate", validate),
      Stage("Prepare Files", prepare_files),
      Stage("HTML Validation", html_validation),
      Stage("Deploy to S3", deploy),
      Stage("Fix Content Types", fix_content_types),
      Stage("Configure S3 Website", website),
      Stage("Invalidate CloudFront", invalidate, when=lambda: should_invalidate(config)),
    ],
    on_success=on_success,
    on_failure=on_failure,
    always=[cleanup],
  )
