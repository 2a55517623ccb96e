"""Candidate model.

One resource instance observed in a provider listing, evaluated for deletion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Tag set on resources whose provider exposes no creation time, so that
# age-based rules can apply on a later run.
FIRST_SEEN_TAG_KEY = "cloud-nuke-first-seen"

LEGACY_FIRST_SEEN_FORMAT = "%Y-%m-%d %H:%M:%S"

# Resources tagged <key>=true are never deleted unless a policy opts out.
EXCLUSION_TAG_KEY = "cloud-nuke-excluded"


def as_utc(value: datetime) -> datetime:
    """Return an aware datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Candidate:
    """Candidate resource entity.

    Constructed fresh on every listing pass and never mutated. Only the
    identifier is carried forward once the inclusion decision is made.

    Attributes:
        identifier: Provider-unique resource identifier
        name: Human label used by name rules (optional)
        created_at: Creation time (optional, time rules never match without it)
        tags: Resource tags
        resource_type: Resource type the candidate was listed for (optional)
    """

    identifier: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    tags: Mapping[str, str] = field(default_factory=dict)
    resource_type: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate identifier and normalize creation time to UTC."""
        if not self.identifier:
            raise ValueError("Candidate identifier cannot be empty")

        if self.created_at is not None:
            object.__setattr__(self, "created_at", as_utc(self.created_at))

        # Read-only copy, later changes by the lister must not leak in
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags or {})))

    def __hash__(self) -> int:
        return hash((self.identifier, self.resource_type))

    @staticmethod
    def first_seen_from_tags(tags: Optional[Mapping[str, str]]) -> Optional[datetime]:
        """Parse the first-seen tag into a creation time.

        Args:
            tags: Resource tags (may be None)

        Returns:
            Aware UTC datetime, or None when the tag is absent or unparseable
        """
        if not tags or FIRST_SEEN_TAG_KEY not in tags:
            return None

        raw = tags[FIRST_SEEN_TAG_KEY]
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"First-seen tag {raw!r} is not RFC 3339, trying legacy format")
            try:
                parsed = datetime.strptime(raw, LEGACY_FIRST_SEEN_FORMAT)
            except ValueError:
                logger.debug(f"Unable to parse first-seen tag {raw!r}")
                return None

        return as_utc(parsed)
