"""CDK constructs for deployment pipeline infrastructure."""

from .deployment_user import DeploymentUser, deployer_policy_statements

__all__ = [
  "DeploymentUser",
  "deployer_policy_statements",
]
