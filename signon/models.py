"""Domain models for the sign-on service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class User:
    """Represents a user account stored in the sign-on database."""

    id: int
    name: str
    email: str
    image_url: str
    google_id: str
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> Dict[str, Union[int, str]]:
        """Return the fields that may be sent back to clients."""

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "imageUrl": self.image_url,
            "googleId": self.google_id,
        }


@dataclass(frozen=True)
class IdentityClaim:
    """Verified attributes asserted by Google for a single request."""

    subject: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None


__all__ = ["IdentityClaim", "User"]
