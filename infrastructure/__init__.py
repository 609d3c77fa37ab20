"""CDK app provisioning credentials for the deployment pipeline."""
