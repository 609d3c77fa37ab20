"""Chat notifications through a Slack incoming webhook."""

import json
import logging
import os
import urllib.error
import urllib.request
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader

from .config import PipelineConfig

if TYPE_CHECKING:
  from .pipeline import PipelineResult

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


def ci_context(environ: Mapping[str, str]) -> dict[str, str]:
  """Build details exported by the CI host, when present."""
  return {
    "job_name": environ.get("JOB_NAME", ""),
    "build_number": environ.get("BUILD_NUMBER", ""),
    "build_url": environ.get("BUILD_URL", ""),
  }


class SlackNotifier:
  """Render and post deployment status messages."""

  def __init__(
    self,
    webhook_url: str,
    environ: Mapping[str, str] | None = None,
    timeout: float = 10.0,
  ) -> None:
    self.webhook_url = webhook_url
    self.environ = os.environ if environ is None else environ
    self.timeout = timeout
    self.jinja_env = Environment(
      loader=FileSystemLoader(str(TEMPLATES_DIR)),
      autoescape=False,
      trim_blocks=True,
      lstrip_blocks=True,
    )

  def render(self, template_name: str, **context: Any) -> str:
    template = self.jinja_env.get_template(template_name)
    return template.render(ci=ci_context(self.environ), **context).strip()

  def send(self, text: str) -> bool:
    """Post a message. Delivery problems are logged, never raised."""
    try:
      # Malformed URLs raise ValueError (http.client.InvalidURL included)
      request = urllib.request.Request(
        self.webhook_url,
        data=json.dumps({"text": text}).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
      )
      with urllib.request.urlopen(request, timeout=self.timeout) as response:
        status = getattr(response, "status", 200)
    except (urllib.error.URLError, OSError, ValueError) as e:
      logger.warning("Slack notification failed: %s", e)
      return False

    if status >= 400:
      logger.warning("Slack notification rejected with HTTP %s", status)
      return False
    return True

  def notify_success(self, config: PipelineConfig, result: "PipelineResult") -> bool:
    return self.send(self.render("success.txt.j2", config=config, result=result))

  def notify_failure(self, config: PipelineConfig, result: "PipelineResult") -> bool:
    return self.send(self.render("failure.txt.j2", config=config, result=result))
