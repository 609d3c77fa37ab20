"""Tests for entry file validation and the staging copy."""

import os
from pathlib import Path

import pytest

from site_pipeline.config import PipelineConfig
from site_pipeline.exceptions import DeployError, MissingEntryFileError
from site_pipeline.staging import (
  is_excluded,
  prepare_staging,
  remove_staging,
  validate_entry_file,
)


class TestValidateEntryFile:
  """Tests for validate_entry_file."""

  def test_present(self, site: Path) -> None:
    assert validate_entry_file(site) == site / "index.html"

  def test_missing(self, site: Path) -> None:
    (site / "index.html").unlink()

    with pytest.raises(MissingEntryFileError, match="index.html"):
      validate_entry_file(site)

  def test_directory_does_not_count(self, tmp_path: Path) -> None:
    (tmp_path / "index.html").mkdir()

    with pytest.raises(MissingEntryFileError):
      validate_entry_file(tmp_path)


class TestIsExcluded:
  """Tests for exclusion matching."""

  def test_matches_any_component(self) -> None:
    assert is_excluded(Path("sub/.git/config"), [".git"])
    assert is_excluded(Path(".git"), [".git"])

  def test_glob_patterns(self) -> None:
    assert is_excluded(Path("notes/draft.md"), ["*.md"])
    assert not is_excluded(Path("index.html"), ["*.md"])

  def test_no_partial_name_match(self) -> None:
    assert not is_excluded(Path(".github/workflows/ci.yml"), [".git"])


class TestPrepareStaging:
  """Tests for prepare_staging."""

  def test_excludes_metadata(self, site: Path) -> None:
    """VCS metadata, the pipeline file and the README are left out."""
    config = PipelineConfig(bucket="example.com", source_dir=site)

    copied = prepare_staging(site, config.staging_path, config.exclude)

    staged = site / "dist"
    assert not (staged / ".git").exists()
    assert not (staged / ".gitignore").exists()
    assert not (staged / "Jenkinsfile").exists()
    assert not (staged / "README.md").exists()
    assert sorted(copied) == [
      "about/index.html",
      "css/site.css",
      "img/logo.svg",
      "index.html",
      "js/app.js",
      "manifest.json",
      "sitemap.xml",
    ]
    for name in copied:
      assert (staged / name).read_bytes() == (site / name).read_bytes()

  def test_recreates_staging_dir(self, site: Path) -> None:
    """Leftovers from an earlier run are removed."""
    staged = site / "dist"
    staged.mkdir()
    (staged / "stale.html").write_text("old")

    prepare_staging(site, staged, ["dist", ".git"])

    assert not (staged / "stale.html").exists()
    assert (staged / "index.html").exists()

  def test_never_copies_into_itself(self, site: Path) -> None:
    """The staging dir is skipped even when not listed as excluded."""
    staged = site / "dist"
    staged.mkdir()

    copied = prepare_staging(site, staged, [])

    assert not any(name.startswith("dist/") for name in copied)

  def test_preserves_modification_time(self, site: Path) -> None:
    os.utime(site / "css" / "site.css", (1_600_000_000, 1_600_000_000))

    prepare_staging(site, site / "dist", ["dist"])

    assert (site / "dist" / "css" / "site.css").stat().st_mtime == 1_600_000_000

  def test_nested_dir_named_like_staging_is_kept(self, site: Path) -> None:
    """Only the staging dir itself is pruned, not other dirs sharing its name."""
    (site / "vendor" / "dist").mkdir(parents=True)
    (site / "vendor" / "dist" / "lib.js").write_text("lib()")

    copied = prepare_staging(site, site / "dist", [".git"])

    assert "vendor/dist/lib.js" in copied
    assert (site / "dist" / "vendor" / "dist" / "lib.js").exists()

  def test_skip_paths_are_exact(self, site: Path) -> None:
    """A skipped root file does not hide same-named files deeper down."""
    (site / "deploy.yaml").write_text("pipeline: {}\n")
    (site / "about" / "deploy.yaml").write_text("shown: true\n")

    copied = prepare_staging(site, site / "dist", [".git"], [site / "deploy.yaml"])

    assert "deploy.yaml" not in copied
    assert "about/deploy.yaml" in copied

  @pytest.mark.parametrize("staging", [".", ".."])
  def test_refuses_to_wipe_workspace(self, site: Path, staging: str) -> None:
    with pytest.raises(DeployError, match="must not contain the workspace"):
      prepare_staging(site, site / staging, [".git"])

    assert (site / "index.html").exists()

  def test_staging_outside_workspace(self, site: Path, tmp_path: Path) -> None:
    staged = tmp_path / "elsewhere" / "dist"

    copied = prepare_staging(site, staged, [".git"])

    assert "index.html" in copied
    assert (staged / "index.html").exists()


def test_remove_staging(tmp_path: Path) -> None:
  staged = tmp_path / "dist"
  (staged / "sub").mkdir(parents=True)

  remove_staging(staged)
  remove_staging(staged)

  assert not staged.exists()
