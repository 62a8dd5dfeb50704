# storefront/utils/security.py
from datetime import datetime, timedelta, timezone

import jwt

from storefront.utils.settings import JWT_ALGORITHM, JWT_SECRET


def create_access_token(user_id: int, expires_in: timedelta = timedelta(hours=12)) -> str:
    payload = {
        "id": user_id,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int | None:
    """Returns the user id carried by the token, None when invalid or expired."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None

    user_id = payload.get("id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    return user_id
