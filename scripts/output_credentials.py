#!/usr/bin/env python3
"""Print pipeline deployer credentials stored in SSM Parameter Store.

The output holds the parameters the deployment job expects, ready to be
stored as CI credentials or sourced into a shell.
"""

import argparse
import json
import shlex
import sys
from typing import Any

import boto3

# Keys the deployment job cannot run without
REQUIRED_KEYS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "S3_BUCKET", "AWS_REGION")


def parameter_names(prefix: str) -> tuple[str, str]:
  """SSM names of the credentials document and the secret key."""
  prefix = prefix.strip("/")
  return f"/{prefix}/credentials", f"/{prefix}/secret-access-key"


def get_credentials(prefix: str, region: str = "us-east-1", ssm: Any = None) -> dict[str, str]:
  """Fetch the deployer's settings and secret key in one SSM call.

  An empty ``CLOUDFRONT_DISTRIBUTION_ID`` is left out, since the pipeline
  treats empty parameters as unset. Raises ``LookupError`` when a parameter
  or a required key is missing.
  """
  ssm = ssm or boto3.client("ssm", region_name=region)
  document_name, secret_name = parameter_names(prefix)

  response = ssm.get_parameters(Names=[document_name, secret_name], WithDecryption=True)
  if response.get("InvalidParameters"):
    raise LookupError(f"Parameters not found: {', '.join(response['InvalidParameters'])}")
  values = {p["Name"]: p["Value"] for p in response["Parameters"]}

  document = json.loads(values[document_name])
  credentials = {key: str(value) for key, value in document.items() if value not in (None, "")}
  credentials["AWS_SECRET_ACCESS_KEY"] = values[secret_name]

  missing = [key for key in REQUIRED_KEYS if not credentials.get(key)]
  if missing:
    raise LookupError(f"{document_name} is missing {', '.join(missing)}")
  return credentials


def format_credentials(credentials: dict[str, str], fmt: str = "env") -> str:
  """Render credentials as env lines, shell exports or JSON."""
  if fmt == "json":
    return json.dumps(credentials, indent=2)
  if fmt == "export":
    return "\n".join(f"export {key}={shlex.quote(value)}" for key, value in credentials.items())
  return "\n".join(f"{key}={value}" for key, value in credentials.items())


def main(argv: list[str] | None = None) -> None:
  """Main entry point."""
  parser = argparse.ArgumentParser(
    description="Retrieve deployment pipeline credentials for a site"
  )
  parser.add_argument(
    "prefix",
    help="Deployer resource prefix (e.g., example-com)",
  )
  parser.add_argument(
    "--region",
    default="us-east-1",
    help="AWS region (default: us-east-1)",
  )
  parser.add_argument(
    "--format",
    choices=["env", "json", "export"],
    default="env",
    help="Output format (default: env)",
  )

  args = parser.parse_args(argv)

  try:
    credentials = get_credentials(args.prefix, args.region)
  except Exception as e:
    print(f"Error retrieving credentials: {e}", file=sys.stderr)
    sys.exit(1)

  print(format_credentials(credentials, args.format))


if __name__ == "__main__":
  main()
