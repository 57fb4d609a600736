from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from src.database import get_db
from src.terminals.schemas import Terminal, TerminalSearch, TerminalSearchResult
from src.terminals.service import TerminalService

router = APIRouter()

@router.get("/", response_model=TerminalSearchResult)
def get_terminals(
    skip: int = Query(0, ge=0, description="Number of terminals to skip"),
    limit: int = Query(50, ge=1, le=100, description="Number of terminals to return"),
    query: Optional[str] = Query(None, description="Search by terminal name"),
    province: Optional[str] = Query(None, description="Filter by province"),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    db: Session = Depends(get_db)
):
    """Get terminals with optional search and filters"""
    search = TerminalSearch(query=query, province=province, is_active=is_active)
    terminals, total = TerminalService.get_terminals(db, skip=skip, limit=limit, search=search)

    return TerminalSearchResult(
        terminals=terminals,
        total=total,
        page=(skip // limit) + 1,
        per_page=limit
    )

@router.get("/provinces", response_model=List[str])
def get_provinces(db: Session = Depends(get_db)):
    """Get provinces that have at least one active terminal"""
    return TerminalService.get_provinces(db)

@router.get("/{terminal_id}", response_model=Terminal)
def get_terminal(terminal_id: str, db: Session = Depends(get_db)):
    """Get terminal by ID"""
    terminal = TerminalService.get_terminal_by_id(db, terminal_id)
    if not terminal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Terminal not found"
        )
    return terminal
