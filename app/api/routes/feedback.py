import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.utils.database import get_db
from app.services.feedback_service import FeedbackService
from app.api.errors import DOMAIN_ERRORS, http_error
from app.api.schemas.feedback_schemas import FeedbackCreate, FeedbackResponse

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(data: FeedbackCreate, db: Session = Depends(get_db)):
    """
    提交录音体验反馈
    """
    try:
        feedback_service = FeedbackService(db)
        return feedback_service.submit_feedback(data.unique_code, data.rating, data.comments)
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"提交反馈失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="提交反馈失败"
        )
