"""IAM user for pipeline deployments with credentials in SSM Parameter Store."""

import json

from aws_cdk import Stack
from aws_cdk import aws_iam as iam
from aws_cdk import aws_ssm as ssm
from constructs import Construct


def deployer_policy_statements(
  bucket_name: str,
  distribution_arn: str | None = None,
) -> list[iam.PolicyStatement]:
  """Permissions for every AWS call the deployment pipeline makes."""
  bucket_arn = f"arn:aws:s3:::{bucket_name}"
  statements = [
    iam.PolicyStatement(
      sid="ListAndConfigureBucket",
      actions=[
        "s3:ListBucket",
        "s3:PutBucketWebsite",
        "s3:PutBucketPolicy",
        "s3:PutBucketPublicAccessBlock",
      ],
      resources=[bucket_arn],
    ),
    iam.PolicyStatement(
      sid="SyncObjects",
      actions=["s3:GetObject", "s3:PutObject", "s3:DeleteObject"],
      resources=[f"{bucket_arn}/*"],
    ),
  ]
  if distribution_arn:
    statements.append(
      iam.PolicyStatement(
        sid="InvalidateDistribution",
        actions=["cloudfront:CreateInvalidation"],
        resources=[distribution_arn],
      )
    )
  return statements


class DeploymentUser(Construct):
  """IAM user the CI host uses as its AWS credential for site deployments.

  Credentials are stored as a JSON object in SSM Parameter Store:
  {
    "AWS_ACCESS_KEY_ID": "...",
    "S3_BUCKET": "...",
    "AWS_REGION": "...",
    "CLOUDFRONT_DISTRIBUTION_ID": "..."
  }
  The secret access key is stored in a separate parameter.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    bucket_name: str,
    distribution_id: str | None = None,
    resource_prefix: str = "",
  ) -> None:
    super().__init__(scope, id)

    stack = Stack.of(self)
    prefix = resource_prefix or bucket_name.replace(".", "-")

    self.user = iam.User(self, "User", user_name=f"{prefix}-deployer")

    distribution_arn = None
    if distribution_id:
      distribution_arn = (
        f"arn:aws:cloudfront::{stack.account}:distribution/{distribution_id}"
      )

    self.policy = iam.Policy(
      self,
      "Policy",
      policy_name=f"{prefix}-deploy",
      statements=deployer_policy_statements(bucket_name, distribution_arn),
    )
    self.policy.attach_to_user(self.user)

    access_key = iam.AccessKey(self, "AccessKey", user=self.user)

    self.credentials_parameter = ssm.StringParameter(
      self,
      "CredentialsParameter",
      parameter_name=f"/{prefix}/credentials",
      description=f"Deployment credentials for {bucket_name}",
      string_value=json.dumps(
        {
          "AWS_ACCESS_KEY_ID": access_key.access_key_id,
          "S3_BUCKET": bucket_name,
          "AWS_REGION": stack.region,
          "CLOUDFRONT_DISTRIBUTION_ID": distribution_id or "",
        }
      ),
    )

    self.secret_key_parameter = ssm.StringParameter(
      self,
      "SecretKeyParameter",
      parameter_name=f"/{prefix}/secret-access-key",
      description=f"Secret access key for {bucket_name} deployment",
      string_value=access_key.secret_access_key.unsafe_unwrap(),
    )
