from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

class RecordingResponse(BaseModel):
    id: int
    unique_code: str
    language: str
    sentence_index: int
    sentence_text: str
    file_path: str
    snr: Optional[float] = None
    duration: Optional[float] = None
    needs_rerecording: bool
    is_rerecording: bool
    recording_date: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True
    )

class RecordingListResponse(BaseModel):
    unique_code: str
    recordings: List[RecordingResponse]
    total: int

class WaveformResponse(BaseModel):
    recording_id: int
    bars: List[float]

class RerecordRequest(BaseModel):
    unique_code: str
    language: str
    sentence_index: int

class RerecordCountResponse(BaseModel):
    unique_code: str
    language: str
    count: int
