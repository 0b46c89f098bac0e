"""Bearer-token identity for the journal API.

Tokens are issued by the identity provider; this module only verifies them
and hands the subject claim to the routes as the owner id. The signing
secret comes from the Settings the app was created with.
"""

from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from loguru import logger

from tradejournal.config import Settings

security = HTTPBearer()

ALGORITHM = "HS256"


def create_token(owner_id: str, config: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=config.jwt_expiry_hours)
    return jwt.encode({"sub": owner_id, "exp": expire}, config.jwt_secret, algorithm=ALGORITHM)


def verify_token(token: str, config: Settings) -> str | None:
    """Owner id carried by a valid token, or None."""
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None
    return payload.get("sub") or None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    from tradejournal.api.main import app_state

    owner_id = verify_token(credentials.credentials, app_state["config"])
    if owner_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return owner_id
