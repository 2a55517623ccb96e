"""Reference AWS resource types."""

from __future__ import annotations

from cloudsweep.aws.resources.cloudwatch_dashboard import CloudWatchDashboards
from cloudsweep.aws.resources.eks import EKSClusters
from cloudsweep.aws.resources.nat_gateway import NatGateways

__all__ = ["CloudWatchDashboards", "EKSClusters", "NatGateways"]
