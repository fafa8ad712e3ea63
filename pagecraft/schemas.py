from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]


class Preview(BaseModel):
    html: str = ""
    css: str = ""
    js: str = ""


class App(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    preview: Preview = Field(default_factory=Preview)


class Message(BaseModel):
    id: str
    role: Role
    content: str
    timestamp: datetime
    app_id: str


class Conversation(BaseModel):
    app_id: str
    messages: List[Message] = Field(default_factory=list)


class CreateAppData(BaseModel):
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None


class UpdateAppData(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    preview: Optional[Preview] = None


class GeneratedCode(BaseModel):
    """Code fragments and explanation parsed out of one model reply."""

    html: Optional[str] = None
    css: Optional[str] = None
    js: Optional[str] = None
    explanation: str

    def has_code(self) -> bool:
        return bool(self.html or self.css or self.js)
