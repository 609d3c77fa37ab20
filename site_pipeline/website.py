"""S3 static website hosting configuration."""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Regions whose website endpoint uses a dash before the region name
DASH_ENDPOINT_REGIONS = {
  "us-east-1",
  "us-west-1",
  "us-west-2",
  "ap-southeast-1",
  "ap-southeast-2",
  "ap-northeast-1",
  "eu-west-1",
  "sa-east-1",
  "us-gov-west-1",
}


def website_endpoint(bucket: str, region: str) -> str:
  """Return the public S3 website URL for a bucket."""
  separator = "-" if region in DASH_ENDPOINT_REGIONS else "."
  return f"http://{bucket}.s3-website{separator}{region}.amazonaws.com"


def public_read_policy(bucket: str) -> dict[str, Any]:
  """Bucket policy granting anonymous read access to every object."""
  return {
    "Version": "2012-10-17",
    "Statement": [
      {
        "Sid": "PublicReadGetObject",
        "Effect": "Allow",
        "Principal": "*",
        "Action": "s3:GetObject",
        "Resource": f"arn:aws:s3:::{bucket}/*",
      }
    ],
  }


def configure_website(
  s3_client: Any,
  bucket: str,
  region: str,
  index_document: str = "index.html",
  error_document: str = "index.html",
  dry_run: bool = False,
) -> str:
  """Enable website hosting with public read access and return the endpoint.

  The public access block must be lifted first, otherwise S3 rejects the
  public bucket policy.
  """
  endpoint = website_endpoint(bucket, region)
  if dry_run:
    logger.info("(dry run) configure website hosting on %s", bucket)
    return endpoint

  s3_client.put_public_access_block(
    Bucket=bucket,
    PublicAccessBlockConfiguration={
      "BlockPublicAcls": False,
      "IgnorePublicAcls": False,
      "BlockPublicPolicy": False,
      "RestrictPublicBuckets": False,
    },
  )
  s3_client.put_bucket_website(
    Bucket=bucket,
    WebsiteConfiguration={
      "IndexDocument": {"Suffix": index_document},
      "ErrorDocument": {"Key": error_document},
    },
  )
  s3_client.put_bucket_policy(Bucket=bucket, Policy=json.dumps(public_read_policy(bucket)))

  logger.info("Website hosting enabled: %s", endpoint)
  return endpoint
