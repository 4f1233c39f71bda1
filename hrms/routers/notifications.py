from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from hrms.core.exceptions import AppException
from hrms.core.schemas import ApiResponse
from hrms.database import get_db
from hrms.models.notification import Notification
from hrms.routers.auth_deps import get_current_user
from hrms.schemas.auth import TokenData
from hrms.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _to_response(notification: Notification) -> dict:
    return NotificationResponse.model_validate(notification, from_attributes=True).dump()


@router.get("")
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user)
):
    query = db.query(Notification).filter(
        Notification.user_id == current_user.user_id,
        Notification.tenant_id == current_user.tenant_id
    )
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()
    return JSONResponse(
        status_code=200,
        content=ApiResponse.ok(data={"notifications": [_to_response(n) for n in notifications]}).to_dict()
    )


@router.patch("/{notification_id}/read")
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == current_user.user_id,
        Notification.tenant_id == current_user.tenant_id
    ).first()

    if not notification:
        raise AppException("Notification not found", status_code=404, error_code="NOTIFICATION_NOT_FOUND")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return JSONResponse(
        status_code=200,
        content=ApiResponse.ok(data={"notification": _to_response(notification)}).to_dict()
    )
