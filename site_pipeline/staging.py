"""Workspace validation and the staging copy."""

import fnmatch
import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from .exceptions import DeployError, MissingEntryFileError

logger = logging.getLogger(__name__)


def validate_entry_file(source_dir: Path, entry_file: str = "index.html") -> Path:
  """Fail unless the entry file exists at the workspace root."""
  path = source_dir / entry_file
  if not path.is_file():
    raise MissingEntryFileError(str(path))
  logger.info("Found entry file %s", path)
  return path


def is_excluded(relative: Path, patterns: Iterable[str]) -> bool:
  """True when any component of ``relative`` matches an exclusion pattern."""
  patterns = list(patterns)
  return any(
    fnmatch.fnmatchcase(part, pattern) for part in relative.parts for pattern in patterns
  )


def prepare_staging(
  source_dir: Path,
  staging_dir: Path,
  exclude: Iterable[str],
  skip_paths: Iterable[Path] = (),
) -> list[str]:
  """Recreate ``staging_dir`` as a filtered copy of ``source_dir``.

  ``exclude`` patterns match any path component; ``skip_paths`` are exact
  files or directories. Returns the copied paths relative to the staging
  root, using ``/`` as separator.
  """
  source_dir = source_dir.resolve()
  staging_dir = staging_dir.resolve()
  patterns = list(exclude)
  skipped = {Path(p).resolve() for p in skip_paths}
  skipped.add(staging_dir)

  if staging_dir == source_dir or staging_dir in source_dir.parents:
    raise DeployError(f"Staging directory {staging_dir} must not contain the workspace")

  if staging_dir.exists():
    shutil.rmtree(staging_dir)
  staging_dir.mkdir(parents=True)

  copied: list[str] = []
  for root, dirs, files in os.walk(source_dir):
    root_path = Path(root)
    rel_root = root_path.relative_to(source_dir)

    # Prune in place so os.walk does not descend into excluded trees
    dirs[:] = sorted(
      d
      for d in dirs
      if not is_excluded(rel_root / d, patterns)
      and (root_path / d).resolve() not in skipped
    )

    for name in sorted(files):
      relative = rel_root / name
      if is_excluded(relative, patterns) or (root_path / name).resolve() in skipped:
        continue
      target = staging_dir / relative
      target.parent.mkdir(parents=True, exist_ok=True)
      shutil.copy2(root_path / name, target)
      copied.append(relative.as_posix())

  logger.info("Staged %d files into %s", len(copied), staging_dir)
  return copied


def remove_staging(staging_dir: Path) -> None:
  """Delete the staging directory if present."""
  if staging_dir.exists():
    shutil.rmtree(staging_dir)
    logger.info("Removed staging directory %s", staging_dir)
