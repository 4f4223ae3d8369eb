"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.core.clock import Clock, system_clock
from clinic_portal.core.exceptions import ForbiddenException, UnauthorizedException
from clinic_portal.core.redis_client import CacheManager, get_cache_manager
from clinic_portal.core.security import Role, decode_access_token
from clinic_portal.database import get_db
from clinic_portal.services.authorization import Subject
from clinic_portal.services.identity_service import IdentityService

# Security
security = HTTPBearer(auto_error=False)


def get_clock() -> Clock:
    """Time source for the request; overridden in tests."""
    return system_clock


def get_session_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> tuple[UUID, Role]:
    """
    Extract subject id and role from the bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Subject id and role claimed by the token

    Raises:
        UnauthorizedException: Token missing, invalid, expired or malformed
    """
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Could not validate credentials")

    subject_id = payload.get("sub")
    role = payload.get("role")
    if not isinstance(subject_id, str) or not isinstance(role, str):
        raise UnauthorizedException("Could not validate credentials")

    try:
        return UUID(subject_id), Role(role)
    except ValueError:
        raise UnauthorizedException("Invalid session claims") from None


async def get_current_subject(
    claims: Annotated[tuple[UUID, Role], Depends(get_session_claims)],
    db: Annotated[AsyncSession, Depends(get_db)],
    cache_manager: Annotated[CacheManager | None, Depends(get_cache_manager)],
) -> Subject:
    """
    Resolve the caller to a live, verified identity.

    Raises:
        UnauthorizedException: Identity unknown or soft-deleted
        ForbiddenException: Identity not verified
    """
    subject_id, role = claims
    identity = await IdentityService(cache_manager).get_active_identity(db, role, subject_id)

    if identity is None:
        raise UnauthorizedException("Identity not found")

    if not identity["is_verified"]:
        raise ForbiddenException("Account is not verified")

    return Subject(id=subject_id, role=role)


async def require_doctor(subject: Annotated[Subject, Depends(get_current_subject)]) -> Subject:
    """Restrict an endpoint to doctors."""
    if subject.role != Role.DOCTOR:
        raise ForbiddenException("Doctor access required")
    return subject


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentSubject = Annotated[Subject, Depends(get_current_subject)]
DoctorSubject = Annotated[Subject, Depends(require_doctor)]
ClockDep = Annotated[Clock, Depends(get_clock)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
