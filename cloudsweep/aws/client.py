"""boto3 client factory."""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3

logger = logging.getLogger(__name__)


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
) -> Any:
    """Create a boto3 client.

    Args:
        service_name: AWS service name (e.g. "ec2")
        region_name: AWS region (default: session default)
        profile_name: AWS profile (default: default credential chain)

    Returns:
        boto3 client
    """
    session = boto3.Session(profile_name=profile_name, region_name=region_name)
    logger.debug(f"Creating {service_name} client in {session.region_name or 'default region'}")
    return session.client(service_name)
