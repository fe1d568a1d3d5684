from fastapi import HTTPException, status

from snack_orders.models.user import ADMIN_CLASS_ROOM
from snack_orders.storage import Storage

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'
USERNAME_TAKEN_DETAIL = 'Username already registered.'


def database_unavailable(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def username_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=USERNAME_TAKEN_DETAIL,
    )


def resolve_class_room(storage: Storage, class_room: str | None, is_staff: bool) -> str:
    """Return the class room to store for a user, or reject it.

    Staff accounts fall back to the ``Admin`` sentinel. Everyone else must
    name a class from the registry; the registry's spelling is kept.
    """
    normalized = (class_room or '').strip()

    if is_staff:
        return normalized or ADMIN_CLASS_ROOM

    if not normalized:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='A class is required for students and representatives.',
        )

    for label in storage.get_available_classes():
        if label.lower() == normalized.lower():
            return label

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f'Unknown class: {normalized}.',
    )
