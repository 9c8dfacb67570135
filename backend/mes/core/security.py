import bcrypt
from datetime import datetime, timedelta
from jose import JWTError, jwt
from mes.core.config import settings


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "iss": settings.TOKEN_ISSUER})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user_id: int, username: str, role: str) -> str:
    """Issue a token carrying the caller identity used by the API layer."""
    return create_access_token(data={"sub": str(user_id), "username": username, "role": role})


def verify_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.TOKEN_ISSUER,
        )
        return payload
    except JWTError as e:
        raise ValueError("Invalid token") from e


def refresh_access_token(token: str) -> str:
    """Re-issue a still-valid token with a fresh expiry.

    Tokens whose remaining lifetime exceeds the refresh window are
    rejected so a token cannot be extended indefinitely ahead of time.
    """
    payload = verify_access_token(token)
    remaining = datetime.utcfromtimestamp(payload["exp"]) - datetime.utcnow()
    if remaining > timedelta(minutes=settings.REFRESH_TOKEN_WINDOW_MINUTES):
        raise ValueError("Token is not eligible for refresh")
    return create_user_token(int(payload["sub"]), payload["username"], payload["role"])
