"""CDK stack holding the deployer identity for one site pipeline."""

from typing import Any

import aws_cdk as cdk
from constructs import Construct

from infrastructure.cdk_constructs import DeploymentUser
from infrastructure.config import DeployerConfig


class DeployerStack(cdk.Stack):
  """Stack for a single site's deployment credentials."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    deployer_config: DeployerConfig,
    **kwargs: Any,
  ) -> None:
    super().__init__(scope, id, **kwargs)

    self.deployer = DeploymentUser(
      self,
      "Deployer",
      bucket_name=deployer_config.bucket,
      distribution_id=deployer_config.distribution_id,
      resource_prefix=deployer_config.resource_prefix,
    )

    cdk.CfnOutput(
      self,
      "UserName",
      value=self.deployer.user.user_name,
      description="IAM user for the deployment pipeline",
    )
    cdk.CfnOutput(
      self,
      "CredentialsParameter",
      value=self.deployer.credentials_parameter.parameter_name,
      description="SSM parameter holding the access key id",
    )

    if deployer_config.owner:
      cdk.Tags.of(self).add("Owner", deployer_config.owner)
    cdk.Tags.of(self).add("Project", "site-deploy")
    cdk.Tags.of(self).add("Bucket", deployer_config.bucket)
