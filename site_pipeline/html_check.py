"""Superficial sanity checks for staged HTML files."""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HtmlWarning:
  """A non-fatal finding for one HTML file."""

  path: str
  message: str

  def __str__(self) -> str:
    return f"{self.path}: {self.message}"


def check_html(path: Path, display_name: str | None = None) -> list[HtmlWarning]:
  """Check a file for a doctype declaration and a closing html tag."""
  name = display_name or str(path)
  content = path.read_text(encoding="utf-8", errors="replace").lower()

  warnings: list[HtmlWarning] = []
  if "<!doctype html>" not in content:
    warnings.append(HtmlWarning(name, "missing <!DOCTYPE html> declaration"))
  if "</html>" not in content:
    warnings.append(HtmlWarning(name, "missing closing </html> tag"))
  return warnings


def check_tree(root: Path) -> list[HtmlWarning]:
  """Check every .html file below ``root`` and log the findings."""
  warnings: list[HtmlWarning] = []
  for path in sorted(root.rglob("*.html")):
    if path.is_file():
      warnings.extend(check_html(path, path.relative_to(root).as_posix()))

  for warning in warnings:
    logger.warning("HTML check: %s", warning)
  if not warnings:
    logger.info("HTML check passed")
  return warnings
