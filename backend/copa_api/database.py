from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from copa_api.config import Settings, settings_provider


def build_engine(settings: Settings) -> Engine:
    is_sqlite = settings.database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}

    if is_sqlite and ":memory:" not in settings.database_url:
        db_path = settings.database_url.replace("sqlite:///", "", 1)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        connect_args=connect_args,
    )


engine: Engine = build_engine(settings_provider.get())


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db(bind: Engine = None) -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from copa_api.models.team import Team  # noqa: F401
    from copa_api.models.tournament import Tournament  # noqa: F401
    from copa_api.models.tournament_match import TournamentMatch  # noqa: F401
    from copa_api.models.tournament_team import TournamentTeam  # noqa: F401
    from copa_api.models.user_session import UserSession  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
