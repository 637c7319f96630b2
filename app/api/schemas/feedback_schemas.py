from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class FeedbackCreate(BaseModel):
    unique_code: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    comments: Optional[str] = None

class FeedbackResponse(BaseModel):
    id: int
    unique_code: Optional[str] = None
    rating: int
    comments: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True
    )
