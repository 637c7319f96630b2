from pydantic import BaseModel, ConfigDict
from typing import List
from datetime import datetime

class NotificationResponse(BaseModel):
    id: int
    unique_code: str
    message: str
    read: bool
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True
    )

class NotificationListResponse(BaseModel):
    unique_code: str
    notifications: List[NotificationResponse]
    unread_count: int
