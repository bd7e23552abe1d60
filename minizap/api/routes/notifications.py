"""User notifications: list (paginated) and mark-as-read."""

from fastapi import APIRouter, Depends, HTTPException, Query

from minizap.api.deps import get_repository
from minizap.api.schemas import NotificationListResponse, NotificationResponse
from minizap.db.repository import Repository

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str,
    unread: bool = False,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    repo: Repository = Depends(get_repository),
):
    rows = await repo.list_notifications(user_id, unread_only=unread, limit=limit, offset=offset)
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(r) for r in rows],
        meta={
            "totalCount": await repo.count_notifications(user_id, unread_only=unread),
            "unreadCount": await repo.count_notifications(user_id, unread_only=True),
        },
    )


@router.post("/notifications/{notification_id}/read")
async def mark_read(notification_id: str, repo: Repository = Depends(get_repository)):
    if not await repo.mark_notification_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}
