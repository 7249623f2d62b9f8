from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from talentpulse.core.config import settings

security = HTTPBearer(auto_error=False)

# Default demo caller -- used when no JWT is provided
DEMO_USER_ID = "demo-user"


class CallerContext(BaseModel):
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CallerContext:
    """Extract caller identity from a JWT issued by the identity provider, or fall back to the demo caller.

    In production, remove the fallback and set auto_error=True.
    """
    if credentials is None:
        return CallerContext(user_id=DEMO_USER_ID, role="admin")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
        return CallerContext(
            user_id=str(payload["sub"]),
            role=payload.get("role", "user"),
        )
    except (JWTError, KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from exc


def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    if not caller.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return caller
