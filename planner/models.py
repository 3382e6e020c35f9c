from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel, create_engine, Session

from . import config


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _created_at() -> Column:
    return Column(DateTime(timezone=True), nullable=False, default=utcnow)


class RunStatus(str, Enum):
    DRAFT = "DRAFT"
    READY = "READY"
    FAILED = "FAILED"


class GenerationRun(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(index=True)
    config_path: str
    config_json: str
    status: RunStatus = Field(default=RunStatus.DRAFT)
    page_count: int = 0
    link_count: int = 0
    fail_stage: Optional[str] = None
    fail_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at())


class Artifact(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    run_id: int = Field(foreign_key="generationrun.id", index=True)
    type: str
    path: str
    size_bytes: int = 0
    created_at: datetime = Field(default_factory=utcnow, sa_column=_created_at())


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)
