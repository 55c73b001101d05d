"""Database configuration and session factory."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from after_attached.storage.events import install_attachment_callbacks
from after_attached.storage.models import Base

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports any SQLAlchemy URL; sqlite:/// and postgresql:// are tested.
    """

    url: str
    echo: bool = False

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. AFTER_ATTACHED_DATABASE_URL env var
        2. DATABASE_URL env var (standard)
        3. Default: sqlite:///:memory:

        AFTER_ATTACHED_SQL_ECHO=1 turns on SQL statement logging.
        """
        url = (
            os.environ.get("AFTER_ATTACHED_DATABASE_URL")
            or os.environ.get("DATABASE_URL")
            or "sqlite:///:memory:"
        )
        echo = os.environ.get("AFTER_ATTACHED_SQL_ECHO", "").lower() in _TRUTHY
        return cls(url=url, echo=echo)

    @property
    def sqlalchemy_url(self) -> str:
        """URL suitable for SQLAlchemy engine creation.

        Ensures postgresql:// URLs use the psycopg (v3) driver rather
        than SQLAlchemy's psycopg2 default.
        """
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url


def create_session_factory(
    config: DatabaseConfig, create_tables: bool = True
) -> sessionmaker:
    """Build a sessionmaker with attachment callbacks installed.

    Sessions do not expire instances on commit so that after-commit
    callbacks can read attachment and record attributes without SQL.

    Args:
        config: Database configuration.
        create_tables: Create every table mapped on ``Base`` if missing.
    """
    engine = create_engine(config.sqlalchemy_url, echo=config.echo)
    if create_tables:
        Base.metadata.create_all(engine)

    factory = sessionmaker(bind=engine, expire_on_commit=False)
    install_attachment_callbacks(factory)
    return factory
