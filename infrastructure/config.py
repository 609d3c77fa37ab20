"""Configuration loader for pipeline deployer identities."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class DeployerConfig:
  """A deployer identity for one site's pipeline."""

  name: str
  bucket: str
  distribution_id: str | None = None
  region: str = "us-east-1"
  owner: str = ""

  @property
  def resource_prefix(self) -> str:
    return self.name.replace(".", "-")


@dataclass
class Config:
  """All deployer identities managed by the CDK app."""

  deployers: list[DeployerConfig] = field(default_factory=list)

  @classmethod
  def from_yaml(cls, path: Path | str = "deployers.yaml") -> "Config":
    """Load configuration from YAML file."""
    with open(path) as f:
      data = yaml.safe_load(f) or {}

    defaults = data.get("defaults", {})
    deployers: list[DeployerConfig] = []

    for deployer_data in data.get("deployers", []):
      # Merge defaults with deployer-specific config
      merged = {**defaults, **deployer_data}

      deployers.append(
        DeployerConfig(
          name=merged.get("name") or merged["bucket"],
          bucket=merged["bucket"],
          distribution_id=merged.get("distribution_id") or None,
          region=merged.get("region", "us-east-1"),
          owner=merged.get("owner", ""),
        )
      )

    return cls(deployers=deployers)
