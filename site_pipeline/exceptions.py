"""Exceptions raised by the deployment pipeline."""


class DeployError(Exception):
  """Base class for deployment failures."""


class ConfigError(DeployError):
  """Invalid or incomplete pipeline configuration."""


class MissingEntryFileError(DeployError):
  """The site entry file is not present in the workspace."""

  def __init__(self, path: str) -> None:
    super().__init__(f"Entry file not found: {path}")
    self.path = path


class StageError(DeployError):
  """A pipeline stage failed.

  The original exception is kept as ``__cause__``.
  """

  def __init__(self, stage: str, error: BaseException) -> None:
    super().__init__(f"Stage '{stage}' failed: {error}")
    self.stage = stage
    self.error = error
