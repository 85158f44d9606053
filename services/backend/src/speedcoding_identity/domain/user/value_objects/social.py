"""Social identity value objects."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class SocialProfile:
    """Profile handed over by an OAuth provider after a successful handshake.

    Only ``provider`` and ``provider_id`` are guaranteed. GitHub may omit
    the email address and usually supplies a ``username``; Google supplies
    first and last name instead.
    """

    provider: str
    provider_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        """First and last name joined by a space (may be empty)."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass(frozen=True)
class SocialConnection:
    """Durable link between a local user and an external OAuth identity."""

    id: UUID
    user_id: UUID
    provider: str
    provider_id: str
    created_at: datetime
