"""CloudFront cache invalidation."""

import logging
import time
from collections.abc import Sequence
from typing import Any

from .config import PipelineConfig

logger = logging.getLogger(__name__)


def should_invalidate(config: PipelineConfig) -> bool:
  """Invalidate only when enabled and a distribution id is given."""
  return config.enable_invalidation and bool(config.distribution_id.strip())


def create_invalidation(
  cloudfront_client: Any,
  distribution_id: str,
  paths: Sequence[str] = ("/*",),
  dry_run: bool = False,
) -> str | None:
  """Request invalidation of ``paths`` and return the invalidation id."""
  if dry_run:
    logger.info("(dry run) invalidate %s on %s", ", ".join(paths), distribution_id)
    return None

  response = cloudfront_client.create_invalidation(
    DistributionId=distribution_id,
    InvalidationBatch={
      "Paths": {"Quantity": len(paths), "Items": list(paths)},
      "CallerReference": f"site-deploy-{time.time_ns()}",
    },
  )
  invalidation_id: str = response["Invalidation"]["Id"]
  logger.info("Created invalidation %s on %s", invalidation_id, distribution_id)
  return invalidation_id
