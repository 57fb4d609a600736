from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

class TerminalBase(BaseModel):
    name: str
    province: str
    address: Optional[str] = None
    is_active: bool = True

class Terminal(TerminalBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TerminalSearch(BaseModel):
    query: Optional[str] = None
    province: Optional[str] = None
    is_active: Optional[bool] = None

class TerminalSearchResult(BaseModel):
    terminals: List[Terminal]
    total: int
    page: int
    per_page: int
