"""NAT gateways: deleted asynchronously, confirmed by polling."""

from __future__ import annotations

from typing import Iterator

from botocore.exceptions import ClientError

from cloudsweep.aws.errors import is_not_found, to_deletion_error
from cloudsweep.aws.resources.base import AwsResource
from cloudsweep.models.candidate import Candidate

NOT_FOUND_CODES = ("NatGatewayNotFound", "InvalidNatGatewayID.NotFound")
GONE_STATES = ("deleted", "deleting")


class NatGateways(AwsResource):
    """EC2 NAT gateways."""

    confirms_deletion = True

    @property
    def resource_type(self) -> str:
        return "nat-gateway"

    @property
    def service_name(self) -> str:
        return "ec2"

    def list_candidates(self) -> Iterator[Candidate]:
        paginator = self.client.get_paginator("describe_nat_gateways")
        for page in paginator.paginate():
            for gateway in page.get("NatGateways", []):
                # Gateways already on their way out are not candidates
                if gateway.get("State") in GONE_STATES:
                    continue

                tags = {tag["Key"]: tag["Value"] for tag in gateway.get("Tags", [])}
                yield Candidate(
                    identifier=gateway["NatGatewayId"],
                    name=tags.get("Name"),
                    created_at=gateway.get("CreateTime"),
                    tags=tags,
                    resource_type=self.resource_type,
                )

    def delete(self, identifier: str) -> None:
        try:
            self.client.delete_nat_gateway(NatGatewayId=identifier)
        except ClientError as e:
            if is_not_found(e, NOT_FOUND_CODES):
                self.logger.info(f"NAT gateway {identifier} already deleted")
                return
            raise to_deletion_error(identifier, e) from e

    def confirm_deleted(self, identifier: str) -> bool:
        try:
            response = self.client.describe_nat_gateways(NatGatewayIds=[identifier])
        except ClientError as e:
            if is_not_found(e, NOT_FOUND_CODES):
                return True
            raise

        gateways = response.get("NatGateways", [])
        if not gateways:
            return True
        return all(gateway.get("State") == "deleted" for gateway in gateways)
