from datetime import datetime, timezone
from typing import Optional
import time
import inspect
import functools
import logging

logger = logging.getLogger("pulse_social.timing")

def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def timeit(label: Optional[str] = None):
    """
    Decorator to log execution time for a function (sync or async).

    Place it below the route decorator so the timed function is the one
    FastAPI registers.

    Usage:
        @router.get("/posts")
        @timeit()
        async def list_posts():
            ...

        @timeit("purchase")
        async def bar():
            await ...
    """

    def _decorate(func):
        name = label or getattr(func, "__qualname__", getattr(func, "__name__", "function"))

        def _report(start: float):
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.info(f"[timing] {name} took {elapsed_ms:.2f} ms")

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def _aw(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    _report(start)

            return _aw

        @functools.wraps(func)
        def _w(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                _report(start)

        return _w

    return _decorate
