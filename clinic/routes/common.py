from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError


REFERENCE_ERRORS = (IntegrityError,)

# Flat-file storage raises OSError for I/O and ValueError for unreadable content.
STORAGE_ERRORS = (SQLAlchemyError, OSError, ValueError)


def storage_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Storage unavailable. Verify STORAGE_BACKEND and its connection settings.',
    )


def reference_conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail='The selected doctor or patient no longer exists.',
    )


def require_text(value: str, message: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(message)
    return normalized


def optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None
