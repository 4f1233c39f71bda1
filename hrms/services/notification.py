from typing import Optional

from sqlalchemy.orm import Session

from hrms.models.leave_request import LeaveRequest, LeaveStatus
from hrms.models.notification import Notification


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        tenant_id: int,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
        leave_request_id: Optional[int] = None
    ) -> Notification:
        """
        Internal utility for creating notifications.
        Flushes only; the caller's transaction decides persistence.
        """
        notification = Notification(
            tenant_id=tenant_id,
            user_id=user_id,
            leave_request_id=leave_request_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def notify_approver(db: Session, leave_request: LeaveRequest) -> Optional[Notification]:
        if leave_request.approver_id is None:
            return None
        employee = leave_request.employee
        name = f"{employee.first_name} {employee.last_name}" if employee else f"Employee #{leave_request.employee_id}"
        return NotificationService.create_notification(
            db,
            leave_request.tenant_id,
            leave_request.approver_id,
            "Leave Approval Required",
            f"{name} requested {leave_request.total_days:g} day(s) of leave "
            f"from {leave_request.start_date.isoformat()} to {leave_request.end_date.isoformat()}.",
            "info",
            f"/leave/requests/{leave_request.id}",
            leave_request.id,
        )

    @staticmethod
    def notify_decision(db: Session, leave_request: LeaveRequest) -> Optional[Notification]:
        employee = leave_request.employee
        if employee is None or employee.user_id is None:
            return None
        if leave_request.status == LeaveStatus.APPROVED.value:
            title, type = "Leave Approved", "success"
            message = f"Your leave request for {leave_request.total_days:g} day(s) has been APPROVED."
        else:
            title, type = "Leave Rejected", "error"
            message = "Your leave request has been REJECTED."
            if leave_request.rejection_reason:
                message += f" Reason: {leave_request.rejection_reason}"
        return NotificationService.create_notification(
            db, leave_request.tenant_id, employee.user_id, title, message, type,
            leave_request_id=leave_request.id,
        )
