"""
AssetDesk Backend — Best-Effort Call Guard
============================================

What:  The "attempt, log on failure, continue" policy used by the
       notification dispatcher for every external call it makes.
How:   `attempt()` wraps one awaited call (a directory lookup or a delivery)
       and reports success as a flag instead of raising. `never_raises()`
       wraps whole handler entry points so that nothing, not even a
       malformed snapshot, reaches the caller.
Who:   NotificationDispatcher.

Contract:
    - No retries. A failed call is logged once at ERROR and dropped.
    - Log lines always carry the step name, the entity kind and the entity id.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def attempt(
    call: Callable[[], Awaitable[T]],
    *,
    step: str,
    kind: str,
    entity_id: Any = None,
) -> Tuple[bool, Optional[T]]:
    """
    Await `call()` and swallow any exception it raises.

    Args:
        call: Zero-argument callable returning the awaitable to run.
              A callable (not a bare coroutine) so a failure while building
              the coroutine is caught as well.
        step: Short name of the operation, e.g. "lookup submitter".
        kind: Entity kind the handler is working on ("ticket", "asset", …).
        entity_id: Id of that entity, for log correlation.

    Returns:
        (True, result) on success, (False, None) if the call raised.
    """
    try:
        return True, await call()
    except Exception as e:
        logger.error(
            "Notification step '%s' failed for %s %s: %s",
            step,
            kind,
            entity_id,
            e,
            exc_info=True,
            extra={"step": step, "entity_kind": kind, "entity_id": entity_id},
        )
        return False, None


def never_raises(kind: str) -> Callable:
    """
    Decorator for async handler entry points: log and swallow any exception.

    The decorated coroutine always resolves to None.
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[None]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> None:
            try:
                await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "Failed to process %s notification: %s",
                    kind,
                    e,
                    exc_info=True,
                    extra={"entity_kind": kind},
                )
            return None

        return wrapper

    return decorator
