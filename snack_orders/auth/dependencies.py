from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from snack_orders.auth import jwt_handler
from snack_orders.auth.permissions import Capability, RoleSet, is_allowed
from snack_orders.database import get_db
from snack_orders.models.user import User
from snack_orders.storage import Storage

security = HTTPBearer(auto_error=False)


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    storage: Storage = Depends(get_storage),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        user_id, username = jwt_handler.read_subject(credentials.credentials)
    except jwt_handler.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    user = storage.get_user(user_id)
    if user is None or user.username != username:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_capability(capability: Capability):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not is_allowed(RoleSet.from_user(current_user), capability):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current_user

    return dependency
