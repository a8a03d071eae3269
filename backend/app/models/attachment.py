from datetime import datetime
from typing import Optional
from pydantic import BaseModel
from uuid import UUID


class Attachment(BaseModel):
    id: UUID
    file_name: str
    url: str
    content_type: Optional[str] = None
    size: int = 0
    uploaded_by: UUID
    uploaded_at: datetime
