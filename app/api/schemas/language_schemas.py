from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

class LanguageCreate(BaseModel):
    name: str
    sentences: List[str]

class LanguageResponse(BaseModel):
    id: int
    name: str
    sentences: List[str]
    upload_date: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True
    )

class LanguageSummary(BaseModel):
    id: int
    name: str
    sentence_count: int
    upload_date: Optional[datetime] = None

class SentencesResponse(BaseModel):
    language: str
    sentences: List[str]
    total: int
