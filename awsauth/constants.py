"""
Constants for the awsauth library.
Names follow the AWS CLI/SDK environment and the EC2 instance metadata service.
"""

# Environment variables read when no static credentials are supplied
ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SECURITY_TOKEN = "AWS_SECURITY_TOKEN"

# Instance metadata service (link-local, fixed)
METADATA_HOST = "169.254.169.254"
METADATA_PORT = 80
METADATA_BASE_URL = f"http://{METADATA_HOST}"
METADATA_CREDENTIALS_PATH = "/latest/meta-data/iam/security-credentials/"

# Region assumed when the host name does not carry one
DEFAULT_REGION = "us-east-1"

# TCP reachability probe timeout in seconds
METADATA_PROBE_TIMEOUT = 1.0

# Default metadata client configuration
DEFAULT_CONFIG = {
    'timeout': 5,   # HTTP timeout for metadata requests in seconds
}
