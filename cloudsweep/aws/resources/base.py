"""Base class for AWS resource types."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, Optional

from cloudsweep.aws.client import create_boto_client
from cloudsweep.nuke.resource import NukeableResource


class AwsResource(NukeableResource):
    """NukeableResource backed by one boto3 client.

    A client can be injected (tests, shared sessions); otherwise one is created
    lazily for the configured region and profile.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        profile_name: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.region = region
        self.profile_name = profile_name
        self._client = client
        self.logger = logging.getLogger(f"{__name__}.{self.resource_type}")

    @property
    @abstractmethod
    def service_name(self) -> str:
        """boto3 service name (e.g. "ec2")."""

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = create_boto_client(
                service_name=self.service_name,
                region_name=self.region,
                profile_name=self.profile_name,
            )
        return self._client
