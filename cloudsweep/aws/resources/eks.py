"""EKS clusters: composite teardown of node groups and Fargate profiles."""

from __future__ import annotations

import time
from typing import Any, Callable, Iterator, Optional

from botocore.exceptions import ClientError

from cloudsweep.aws.errors import is_not_found, to_deletion_error
from cloudsweep.aws.resources.base import AwsResource
from cloudsweep.models.candidate import Candidate
from cloudsweep.nuke.dependency import ChildKind, CompositeTeardown
from cloudsweep.nuke.waiter import DEFAULT_CONFIRM_TIMEOUT, DEFAULT_POLL_INTERVAL

NOT_FOUND_CODES = ("ResourceNotFoundException",)


class EKSClusters(AwsResource):
    """EKS clusters.

    A cluster can only be deleted once its managed node groups and Fargate
    profiles are gone. Node groups are deleted in parallel; EKS allows only one
    Fargate profile deletion per cluster at a time, so those run sequentially.
    The teardown confirms the cluster itself, so the orchestrator does not.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        profile_name: Optional[str] = None,
        client: Optional[Any] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(region=region, profile_name=profile_name, client=client)
        self.teardown = CompositeTeardown(
            resource_type=self.resource_type,
            child_kinds=[
                ChildKind(
                    name="nodegroup",
                    list_children=self.list_nodegroups,
                    delete=self.delete_nodegroup,
                    confirm_deleted=self.nodegroup_deleted,
                ),
                ChildKind(
                    name="fargate-profile",
                    list_children=self.list_fargate_profiles,
                    delete=self.delete_fargate_profile,
                    confirm_deleted=self.fargate_profile_deleted,
                    sequential=True,
                ),
            ],
            delete_parent=self.delete_cluster,
            confirm_parent=self.cluster_deleted,
            poll_interval=poll_interval,
            confirm_timeout=confirm_timeout,
            sleep=sleep,
            clock=clock,
        )

    @property
    def resource_type(self) -> str:
        return "ekscluster"

    @property
    def service_name(self) -> str:
        return "eks"

    def list_candidates(self) -> Iterator[Candidate]:
        paginator = self.client.get_paginator("list_clusters")
        for page in paginator.paginate():
            for cluster_name in page.get("clusters", []):
                cluster = self.client.describe_cluster(name=cluster_name)["cluster"]
                yield Candidate(
                    identifier=cluster_name,
                    name=cluster_name,
                    created_at=cluster.get("createdAt"),
                    tags=cluster.get("tags") or {},
                    resource_type=self.resource_type,
                )

    def delete(self, identifier: str) -> None:
        self.teardown.delete(identifier)

    # Node groups

    def list_nodegroups(self, cluster_name: str) -> list[str]:
        paginator = self.client.get_paginator("list_nodegroups")
        return [name for page in paginator.paginate(clusterName=cluster_name) for name in page.get("nodegroups", [])]

    def delete_nodegroup(self, cluster_name: str, nodegroup_name: str) -> None:
        self._delete(
            nodegroup_name,
            self.client.delete_nodegroup,
            clusterName=cluster_name,
            nodegroupName=nodegroup_name,
        )

    def nodegroup_deleted(self, cluster_name: str, nodegroup_name: str) -> bool:
        return self._gone(self.client.describe_nodegroup, clusterName=cluster_name, nodegroupName=nodegroup_name)

    # Fargate profiles

    def list_fargate_profiles(self, cluster_name: str) -> list[str]:
        paginator = self.client.get_paginator("list_fargate_profiles")
        pages = paginator.paginate(clusterName=cluster_name)
        return [name for page in pages for name in page.get("fargateProfileNames", [])]

    def delete_fargate_profile(self, cluster_name: str, profile_name: str) -> None:
        self._delete(
            profile_name,
            self.client.delete_fargate_profile,
            clusterName=cluster_name,
            fargateProfileName=profile_name,
        )

    def fargate_profile_deleted(self, cluster_name: str, profile_name: str) -> bool:
        return self._gone(
            self.client.describe_fargate_profile, clusterName=cluster_name, fargateProfileName=profile_name
        )

    # Cluster

    def delete_cluster(self, cluster_name: str) -> None:
        self._delete(cluster_name, self.client.delete_cluster, name=cluster_name)

    def cluster_deleted(self, cluster_name: str) -> bool:
        return self._gone(self.client.describe_cluster, name=cluster_name)

    def _delete(self, identifier: str, call: Callable[..., Any], **params: Any) -> None:
        try:
            call(**params)
        except ClientError as e:
            if is_not_found(e, NOT_FOUND_CODES):
                self.logger.debug(f"{identifier} already deleted")
                return
            raise to_deletion_error(identifier, e) from e

    @staticmethod
    def _gone(describe: Callable[..., Any], **params: Any) -> bool:
        try:
            describe(**params)
        except ClientError as e:
            if is_not_found(e, NOT_FOUND_CODES):
                return True
            raise
        return False
