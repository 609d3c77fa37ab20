#!/usr/bin/env python3
"""CDK application entry point for deployment pipeline credentials."""

import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import aws_cdk as cdk
import boto3

from infrastructure.config import Config
from infrastructure.stacks.deployer_stack import DeployerStack


def get_account_id() -> str:
  """Get AWS account ID from current credentials."""
  sts = boto3.client("sts")
  return str(sts.get_caller_identity()["Account"])


def main() -> None:
  """Create CDK app with a deployer stack for each configured site."""
  app = cdk.App()

  config_path = app.node.try_get_context("config") or "deployers.yaml"
  config = Config.from_yaml(Path(config_path))

  account_id = get_account_id()

  for deployer in config.deployers:
    DeployerStack(
      app,
      f"SiteDeployer-{deployer.resource_prefix}",
      deployer_config=deployer,
      env=cdk.Environment(
        account=account_id,
        region=deployer.region,
      ),
      description=f"Deployment pipeline credentials for {deployer.bucket}",
    )

  app.synth()


if __name__ == "__main__":
  main()
