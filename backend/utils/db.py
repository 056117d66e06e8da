from fastapi import HTTPException
from sqlalchemy import update, case
from sqlalchemy.exc import IntegrityError, DBAPIError
from core.exceptions import ConflictError


async def safe_flush(session, conflict_message: str = "Duplicate entry", server_error_message: str = "Internal server error"):
    """Flush pending writes, reporting unique/check constraint violations as Conflict.

    Pre-checks in application code are racy; the constraint is what decides
    which of two concurrent inserts wins.
    """
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(conflict_message) from e
    except DBAPIError as e:
        await session.rollback()
        raise HTTPException(status_code=500, detail=server_error_message) from e


async def safe_commit(session, conflict_message: str = "Duplicate entry", server_error_message: str = "Internal server error"):
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(conflict_message) from e
    except DBAPIError as e:
        await session.rollback()
        raise HTTPException(status_code=500, detail=server_error_message) from e


async def adjust_counter(session, model, row_id: int, column: str, delta: int):
    """Add ``delta`` to a denormalized counter column in SQL.

    Decrements are clamped at zero. The expression runs inside the caller's
    transaction, so it commits or rolls back together with the relationship
    row it mirrors. Objects already loaded in the session are not refreshed.
    """
    col = getattr(model, column)
    if delta >= 0:
        new_value = col + delta
    else:
        new_value = case((col + delta > 0, col + delta), else_=0)
    stmt = (
        update(model)
        .where(model.id == row_id)
        .values({column: new_value})
        .execution_options(synchronize_session=False)
    )
    await session.execute(stmt)
