import secrets
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext
from jose import jwt

from . import config

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)

def verify_access_token(token: str) -> dict:
    """Checks signature and expiry; raises jose.JWTError when either fails."""
    return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])

def new_video_url() -> str:
    room_name = f"{config.ROOM_PREFIX}-{secrets.token_urlsafe(6)}"
    return f"{config.VIDEO_BASE_URL}/{room_name}"
