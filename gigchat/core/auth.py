"""Bearer-token identity check. Tokens are issued by the external identity service."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gigchat.core.database import get_engine, store_session
from gigchat.core.errors import AuthenticationRequired
from gigchat.models.marketplace import AuthToken, Profile

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def issue_token(profile_id: int, ttl: Optional[timedelta] = None) -> str:
    token = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + ttl if ttl else None
    with store_session(get_engine(), "issue token") as session:
        session.add(AuthToken(token=token, profile_id=profile_id, expires_at=expires_at))
        session.commit()
    return token


def resolve_token(token: Optional[str]) -> Optional[Profile]:
    if not token:
        return None
    with store_session(get_engine(), "verify token") as session:
        record = session.get(AuthToken, token)
        if record is None:
            return None
        if record.expires_at is not None:
            expires_at = record.expires_at
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= datetime.now(timezone.utc):
                logger.debug(f"Expired token for profile {record.profile_id}")
                return None
        return session.get(Profile, record.profile_id)


async def get_current_profile(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Profile:
    profile = resolve_token(credentials.credentials if credentials else None)
    if profile is None:
        raise AuthenticationRequired()
    return profile
