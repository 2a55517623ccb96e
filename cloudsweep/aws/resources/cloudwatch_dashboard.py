"""CloudWatch dashboards: deleted with the native bulk call."""

from __future__ import annotations

from typing import Iterator, Mapping, Optional, Sequence

from botocore.exceptions import ClientError

from cloudsweep.aws.errors import error_code, to_deletion_error
from cloudsweep.aws.resources.base import AwsResource
from cloudsweep.models.candidate import Candidate


class CloudWatchDashboards(AwsResource):
    """CloudWatch dashboards.

    DeleteDashboards accepts many names per call and is all-or-nothing: one
    error fails every dashboard of the call.
    """

    supports_bulk_delete = True

    @property
    def resource_type(self) -> str:
        return "cloudwatch-dashboard"

    @property
    def service_name(self) -> str:
        return "cloudwatch"

    @property
    def max_batch_size(self) -> int:
        return 49

    def list_candidates(self) -> Iterator[Candidate]:
        paginator = self.client.get_paginator("list_dashboards")
        for page in paginator.paginate():
            for dashboard in page.get("DashboardEntries", []):
                # Dashboards expose no creation time, last modification is the closest
                yield Candidate(
                    identifier=dashboard["DashboardName"],
                    name=dashboard["DashboardName"],
                    created_at=dashboard.get("LastModified"),
                    resource_type=self.resource_type,
                )

    def delete(self, identifier: str) -> None:
        error = self.bulk_delete([identifier])[identifier]
        if error is not None:
            raise error

    def bulk_delete(self, identifiers: Sequence[str]) -> Mapping[str, Optional[BaseException]]:
        try:
            self.client.delete_dashboards(DashboardNames=list(identifiers))
        except ClientError as e:
            self.logger.debug(f"[Failed] DeleteDashboards of {len(identifiers)}: {error_code(e)}")
            return {identifier: to_deletion_error(identifier, e) for identifier in identifiers}

        return {identifier: None for identifier in identifiers}
