from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.api.schemas.record_schemas import RecordingResponse

class SessionCreate(BaseModel):
    unique_code: str
    language: str
    start_index: Optional[int] = None

class GoToRequest(BaseModel):
    index: int

class SessionResponse(BaseModel):
    id: int
    unique_code: str
    language: str
    status: str
    current_step: str
    current_index: int
    total_sentences: int
    saved_count: int
    completed: bool
    has_previous: bool
    has_next: bool
    sentence_text: Optional[str] = None
    sentence_recorded: bool
    needs_rerecording: bool
    recorded_count: int
    created_at: datetime
    end_time: Optional[datetime] = None

class SessionListResponse(BaseModel):
    unique_code: str
    sessions: list
    total: int

class SaveRecordingResponse(BaseModel):
    session: SessionResponse
    recording: RecordingResponse
