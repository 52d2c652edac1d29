from collections.abc import Callable, Generator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from registrar.core.exceptions import AuthenticationError, PermissionDeniedError
from registrar.core.security import decode_token
from registrar.db.session import SessionLocal
from registrar.models.user import User, UserRole

# Missing credentials are reported through AuthenticationError, not FastAPI's own 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _user_id_from(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authenticated")
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as exc:
        raise AuthenticationError() from exc
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError()
    return user_id


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, _user_id_from(credentials))
    if user is None:
        raise AuthenticationError()
    if not user.is_active:
        raise PermissionDeniedError("User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    """Dependency that admits only users holding one of ``roles``."""
    allowed = frozenset(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise PermissionDeniedError(required_roles=[role.value for role in allowed])
        return current_user

    return role_checker
