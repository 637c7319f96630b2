import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.utils.database import get_db
from app.services.language_service import LanguageService
from app.api.errors import DOMAIN_ERRORS, http_error
from app.api.schemas.language_schemas import LanguageSummary, SentencesResponse

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[LanguageSummary])
async def list_languages(db: Session = Depends(get_db)):
    """
    获取可录制的语言列表
    """
    try:
        language_service = LanguageService(db)
        return [
            {
                "id": language.id,
                "name": language.name,
                "sentence_count": len(language.sentences or []),
                "upload_date": language.upload_date,
            }
            for language in language_service.get_all_languages()
        ]
    except Exception as e:
        logger.error(f"获取语言列表失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取语言列表失败"
        )

@router.get("/{name}/sentences", response_model=SentencesResponse)
async def get_sentences(name: str, db: Session = Depends(get_db)):
    """
    获取某语言的句子列表
    """
    try:
        sentences = LanguageService(db).get_sentences(name)
        return {"language": name, "sentences": sentences, "total": len(sentences)}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"获取句子失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取句子失败"
        )
