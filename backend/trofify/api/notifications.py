"""REST surface for notification listing and read state."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from trofify.container import Container, get_container
from trofify.domain.notifications import UnreadCount

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class NotificationOut(BaseModel):
	id: int
	user_id: str
	actor_id: Optional[str] = None
	post_id: Optional[str] = None
	type: str
	message: str
	is_read: bool
	created_at: Optional[datetime] = None


class UnreadCountOut(BaseModel):
	count: int


class ReadResult(BaseModel):
	success: bool
	userId: str
	count: int

	@classmethod
	def from_snapshot(cls, snapshot: UnreadCount) -> "ReadResult":
		return cls(success=True, userId=snapshot.user_id, count=snapshot.count)


@router.get("/{user_id}", response_model=List[NotificationOut])
async def list_notifications(
	user_id: str,
	limit: int = Query(default=30, ge=1, le=100),
	offset: int = Query(default=0, ge=0),
	container: Container = Depends(get_container),
) -> List[NotificationOut]:
	rows = await container.counter.list_for_user(user_id, limit=limit, offset=offset)
	return [NotificationOut(**row.to_dict()) for row in rows]


@router.get("/{user_id}/unread-count", response_model=UnreadCountOut)
async def unread_count(user_id: str, container: Container = Depends(get_container)) -> UnreadCountOut:
	return UnreadCountOut(count=await container.counter.get_unread_count(user_id))


@router.put("/{notification_id}/read", response_model=ReadResult)
async def mark_read(notification_id: int, container: Container = Depends(get_container)) -> ReadResult:
	snapshot = await container.counter.mark_one_read(notification_id)
	if snapshot is None:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail="notification_not_found")
	return ReadResult.from_snapshot(snapshot)


@router.put("/{user_id}/read-all", response_model=ReadResult)
async def mark_all_read(user_id: str, container: Container = Depends(get_container)) -> ReadResult:
	snapshot = await container.counter.mark_all_read(user_id)
	return ReadResult.from_snapshot(snapshot)
