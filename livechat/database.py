from __future__ import annotations

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


class Database:
    """Engine and session factory for the account/message store."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        kwargs: dict[str, object] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in _MEMORY_URLS:
                # One shared connection, otherwise every pooled connection sees its own empty db.
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.engine = create_engine(url, **kwargs)
        self._session_factory = sessionmaker(autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self._session_factory()

    def create_all(self) -> None:
        from livechat import models  # noqa: F401  registers tables on Base

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()
