"""Notification records and unread-count snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Notification:
    id: int
    user_id: str
    actor_id: Optional[str]
    type: str  # e.g. "like", "comment", "support"
    message: str
    post_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "actor_id": self.actor_id,
            "post_id": self.post_id,
            "type": self.type,
            "message": self.message,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class UnreadCount:
    user_id: str
    count: int

    def to_payload(self) -> dict:
        return {"userId": self.user_id, "count": self.count}
