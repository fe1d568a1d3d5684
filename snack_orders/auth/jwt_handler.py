from datetime import datetime, timedelta, timezone

import jwt

from snack_orders.core import config


class InvalidTokenError(Exception):
    pass


def create_access_token(user_id: int, username: str, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    # PyJWT requires a string subject. User ids are reused after deletion,
    # so the username pins the token to one account.
    payload = {"sub": str(user_id), "username": username, "exp": expire, "iat": issued_at}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def read_subject(token: str) -> tuple[int, str]:
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError("Invalid token") from exc

    subject = payload.get("sub")
    username = payload.get("username")
    if not subject or not str(subject).isdigit() or not username:
        raise InvalidTokenError("Invalid token subject")
    return int(subject), username
