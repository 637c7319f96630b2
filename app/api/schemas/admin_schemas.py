from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime

class AdminLoginRequest(BaseModel):
    password: str

class AdminLoginResponse(BaseModel):
    token: str
    expires_in: int

class ChangePasswordRequest(BaseModel):
    new_password: str
    confirm_password: str

class StorageSettingsUpdate(BaseModel):
    storage_type: Optional[str] = None
    auto_sync: Optional[bool] = None

class GoogleDriveConnect(BaseModel):
    email: str
    folder_id: Optional[str] = None
    folder_name: Optional[str] = None

class StorageSettingsResponse(BaseModel):
    storage_type: str
    auto_sync: bool
    google_connected: bool
    google_email: Optional[str] = None
    google_folder_id: Optional[str] = None
    google_folder_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True
    )

class DashboardStats(BaseModel):
    total_users: int
    total_languages: int
    total_recordings: int
    rerecording_requests: int
    total_feedback: int
    storage_used: int

class AdminUserSummary(BaseModel):
    id: int
    unique_code: str
    name: str
    age: int
    gender: str
    contact_number: str
    language_preference: Optional[str] = None
    created_at: Optional[str] = None

class AdminUserDetail(AdminUserSummary):
    languages: List[str]
    recordings: List[Dict[str, Any]]
