"""AWS integration: boto3 client factory, error helpers and reference resources."""
