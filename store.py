"""
Persistence collaborator: one SqlStore per model, one session per call.
"""
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

import config
from models import Base, Project, BlogPost

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(engine, expire_on_commit=False)


def init_db(bind=engine):
    Base.metadata.create_all(bind)


class AtLeast(NamedTuple):
    """Filter condition `field >= value`; a bare value means equality."""
    value: Any


OrderBy = Sequence[Tuple[str, str]]


class SqlStore:
    def __init__(self, model, session_factory=SessionLocal):
        self.model = model
        self.session_factory = session_factory

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.session_factory() as s:
            row = self.model(**data)
            s.add(row); s.commit(); s.refresh(row)
            return self._as_dict(row)

    def find_many(self, where: Optional[Mapping[str, Any]] = None, order_by: OrderBy = (),
                  take: Optional[int] = None) -> List[Dict[str, Any]]:
        stmt = select(self.model)
        for field, cond in (where or {}).items():
            column = getattr(self.model, field)
            stmt = stmt.where(column >= cond.value if isinstance(cond, AtLeast) else column == cond)
        for field, direction in order_by:
            column = getattr(self.model, field)
            stmt = stmt.order_by(column.desc() if direction == "desc" else column.asc())
        if take is not None:
            stmt = stmt.limit(take)
        with self.session_factory() as s:
            return [self._as_dict(row) for row in s.execute(stmt).scalars()]

    def find_unique(self, id: str) -> Optional[Dict[str, Any]]:
        with self.session_factory() as s:
            row = s.get(self.model, id)
            return self._as_dict(row) if row else None

    def update(self, id: str, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        with self.session_factory() as s:
            row = s.get(self.model, id)
            if not row: return None
            for k, v in data.items(): setattr(row, k, v)
            s.commit(); s.refresh(row)
            return self._as_dict(row)

    def delete(self, id: str) -> bool:
        with self.session_factory() as s:
            row = s.get(self.model, id)
            if not row: return False
            s.delete(row); s.commit()
            return True

    @staticmethod
    def _as_dict(row) -> Dict[str, Any]:
        return {c.key: getattr(row, c.key) for c in row.__table__.columns}


def get_project_store() -> SqlStore:
    return SqlStore(Project)


def get_post_store() -> SqlStore:
    return SqlStore(BlogPost)
