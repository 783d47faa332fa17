from __future__ import annotations

from cvforge.config import get_settings
from cvforge.db import models  # noqa: F401
from cvforge.db.base import Base
from cvforge.db.session import engine


def ensure_data_directories() -> None:
    get_settings().data_dir.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
