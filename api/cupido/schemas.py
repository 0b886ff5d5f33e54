from typing import Optional

from pydantic import BaseModel, Field


class UpsertProfileRequest(BaseModel):
    display_name: str
    contact_handle: Optional[str] = None
    gender: str
    preference: str
    course_code: str
    study_year: str
    answers: list[Optional[str]] = Field(default_factory=list)


class ContactHandleRequest(BaseModel):
    contact_handle: Optional[str] = None


class CreateThreadRequest(BaseModel):
    counterpart_id: str


class SendMessageRequest(BaseModel):
    body: str


class RevealToggleRequest(BaseModel):
    reveal_enabled: bool
