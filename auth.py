import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt
from pymongo.database import Database

from config import get_settings
from database import USERS, get_db

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


# ------------------------- Token service -------------------------

def create_jwt(payload: dict, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRES_MIN
    to_encode = payload.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.ACCESS_TOKEN_SECRET, algorithm=ALGORITHM)


def verify_jwt(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().ACCESS_TOKEN_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="unauthorized access")


# ------------------------- Guards -------------------------

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="unauthorized access")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="unauthorized access")
    return parts[1]


def require_auth(token: str = Depends(get_bearer_token)) -> dict:
    return verify_jwt(token)


def require_admin(claim: dict = Depends(require_auth), db: Database = Depends(get_db)) -> dict:
    """Admin gate. Always runs after require_auth since it depends on the decoded claim."""
    user = db[USERS].find_one({"email": claim.get("email")})
    if not user or user.get("role") != "admin":
        logger.info("Rejected admin access for %s", claim.get("email"))
        raise HTTPException(status_code=403, detail="forbidden access")
    return claim
