"""Session-cookie -> role lookup for admin-only routes. Sessions are issued elsewhere."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session, select

from copa_api.config import Settings, get_settings
from copa_api.database import get_session
from copa_api.errors import NotAuthorized
from copa_api.models.user_session import UserSession

logger = logging.getLogger(__name__)


def lookup_session(session: Session, token: Optional[str], now: Optional[datetime] = None) -> Optional[UserSession]:
    """Active session for token, or None (missing, unknown or expired)."""
    if not token:
        return None
    user_session = session.exec(select(UserSession).where(UserSession.token == token)).first()
    if user_session is None:
        return None
    if user_session.expires_at < (now or datetime.utcnow()):
        return None
    return user_session


def require_admin(
    request: Request,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> UserSession:
    """FastAPI dependency: 403 unless the caller holds an active admin session."""
    token = request.cookies.get(settings.session_cookie_name)
    user_session = lookup_session(session, token)
    if user_session is None or user_session.role != settings.admin_role:
        logger.info("Rejected admin request to %s", request.url.path)
        raise NotAuthorized()
    return user_session
