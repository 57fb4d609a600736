from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional, Tuple
from src.models import Terminal
from src.terminals.schemas import TerminalSearch

class TerminalService:
    @staticmethod
    def get_terminal_by_id(db: Session, terminal_id: str) -> Optional[Terminal]:
        """Get terminal by ID"""
        return db.query(Terminal).filter(Terminal.id == terminal_id).first()

    @staticmethod
    def get_terminals(
        db: Session,
        skip: int = 0,
        limit: int = 50,
        search: Optional[TerminalSearch] = None
    ) -> Tuple[List[Terminal], int]:
        """Get terminals with optional search filters"""
        query = db.query(Terminal)

        if search:
            if search.query:
                query = query.filter(Terminal.name.ilike(f"%{search.query}%"))

            # Province names are matched case-insensitively
            if search.province:
                query = query.filter(func.lower(Terminal.province) == search.province.strip().lower())

            if search.is_active is not None:
                query = query.filter(Terminal.is_active == search.is_active)

        total = query.count()
        terminals = query.order_by(Terminal.province, Terminal.name).offset(skip).limit(limit).all()
        return terminals, total

    @staticmethod
    def get_provinces(db: Session) -> List[str]:
        """Distinct provinces served by an active terminal"""
        rows = db.query(Terminal.province).filter(
            Terminal.is_active == True
        ).distinct().order_by(Terminal.province).all()
        return [province for (province,) in rows]
