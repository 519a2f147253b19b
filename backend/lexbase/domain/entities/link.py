"""Domain entity for monitored external URLs."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Link:
    """A monitored web page whose text is materialized into LINK resources.

    Derived resources carry ``source_id == link.id``. The relationship is
    enforced by the application services, not by a foreign key.
    """

    url: str
    title: str
    description: str | None = None
    id: str | None = None
    last_processed: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def mark_processed(self) -> None:
        """Record a successful (re)materialization of the page content."""
        now = datetime.now(timezone.utc)
        self.last_processed = now
        self.updated_at = now
