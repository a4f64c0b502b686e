"""FastAPI dependencies shared by the routers"""

from typing import Iterator

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from precinct_locator.config import Settings, settings
from precinct_locator.database import Database

# Rate limiting
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"]
)


def get_database(request: Request) -> Database:
    """Database handle owned by the application"""
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    """Dependency to get a database session"""
    yield from get_database(request).get_db()


def get_settings(request: Request) -> Settings:
    """Settings the application was built with"""
    return getattr(request.app.state, "settings", settings)
