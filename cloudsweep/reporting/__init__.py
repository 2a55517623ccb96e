"""Run reporting: event collector and renderers."""

from __future__ import annotations

from cloudsweep.reporting.collector import ReportCollector
from cloudsweep.reporting.renderers import RichTableRenderer, SummaryRenderer

__all__ = ["ReportCollector", "RichTableRenderer", "SummaryRenderer"]
