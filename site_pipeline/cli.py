"""Command line entry point for the deployment pipeline."""

import argparse
import logging
import sys
from typing import Any

from .config import PipelineConfig
from .exceptions import ConfigError, StageError
from .pipeline import PipelineResult, build_pipeline


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
    prog="site-deploy",
    description="Deploy a static website to S3 and optionally invalidate CloudFront",
  )
  parser.add_argument(
    "--config",
    help="YAML config file (default: deploy.yaml when present)",
  )
  parser.add_argument(
    "--source",
    dest="source_dir",
    help="Workspace to deploy (default: current directory)",
  )
  parser.add_argument("--bucket", help="Target S3 bucket (or S3_BUCKET)")
  parser.add_argument("--region", help="AWS region (or AWS_REGION, default: us-east-1)")
  parser.add_argument(
    "--invalidate",
    dest="enable_invalidation",
    action=argparse.BooleanOptionalAction,
    default=None,
    help="Invalidate CloudFront after upload (or ENABLE_CLOUDFRONT_INVALIDATION)",
  )
  parser.add_argument(
    "--distribution-id",
    help="CloudFront distribution ID (or CLOUDFRONT_DISTRIBUTION_ID)",
  )
  parser.add_argument("--staging-dir", help="Staging directory (default: dist)")
  parser.add_argument(
    "--keep-staging",
    action="store_true",
    default=None,
    help="Do not remove the staging directory after the run",
  )
  parser.add_argument(
    "--dry-run",
    action="store_true",
    default=None,
    help="Show what would change without writing to AWS",
  )
  parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
  return parser.parse_args(argv)


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
  """Settings given on the command line; unset flags are None."""
  names = (
    "source_dir",
    "bucket",
    "region",
    "enable_invalidation",
    "distribution_id",
    "staging_dir",
    "keep_staging",
    "dry_run",
  )
  return {name: getattr(args, name) for name in names}


def print_summary(result: PipelineResult) -> None:
  for stage in result.stages:
    print(f"  {stage.status:<8} {stage.name} ({stage.duration:.1f}s)")
  if result.sync is not None:
    print(
      f"  Uploaded {len(result.sync.uploaded)}, deleted {len(result.sync.deleted)},"
      f" unchanged {len(result.sync.unchanged)}"
    )
  if result.website_url:
    print(f"  Website: {result.website_url}")
  if result.invalidation_id:
    print(f"  Invalidation: {result.invalidation_id}")


def main(argv: list[str] | None = None) -> None:
  """Run the deployment pipeline."""
  args = parse_args(argv)
  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
  )
  # boto internals are noisy at DEBUG
  logging.getLogger("botocore").setLevel(logging.WARNING)
  logging.getLogger("urllib3").setLevel(logging.WARNING)

  try:
    config = PipelineConfig.load(args.config, overrides=overrides_from_args(args))
  except ConfigError as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)

  result = build_pipeline(config).run()
  print_summary(result)

  try:
    result.raise_for_status()
  except StageError as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)
  print("✓ Deployment finished")


if __name__ == "__main__":
  main()
