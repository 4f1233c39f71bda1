from datetime import datetime
from typing import Optional
from hrms.core.schemas import CamelModel


class NotificationResponse(CamelModel):
    id: int
    title: str
    message: str
    type: str
    link: Optional[str] = None
    leave_request_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None
