import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.utils.database import get_db
from app.services.notification_service import NotificationService
from app.api.errors import DOMAIN_ERRORS, http_error
from app.api.schemas.notification_schemas import NotificationResponse, NotificationListResponse

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/user/{unique_code}", response_model=NotificationListResponse)
async def get_notifications(unique_code: str, unread_only: bool = False, db: Session = Depends(get_db)):
    """
    获取用户通知，最新的在前
    """
    try:
        notification_service = NotificationService(db)
        notifications = notification_service.get_user_notifications(unique_code, unread_only)
        return {
            "unique_code": unique_code,
            "notifications": notifications,
            "unread_count": notification_service.count_unread(unique_code),
        }
    except Exception as e:
        logger.error(f"获取通知失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取通知失败"
        )

@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(notification_id: int, db: Session = Depends(get_db)):
    """
    标记通知为已读
    """
    try:
        return NotificationService(db).mark_as_read(notification_id)
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"标记通知失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="标记通知失败"
        )
