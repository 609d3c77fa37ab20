"""CDK stacks for deployment pipeline infrastructure."""

from .deployer_stack import DeployerStack

__all__ = ["DeployerStack"]
