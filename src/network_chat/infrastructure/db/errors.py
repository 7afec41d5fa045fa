from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from network_chat.application.exceptions import StoreUnavailableError


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate connection-level database failures into StoreUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailableError("Database unavailable") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreUnavailableError("Database connection lost") from exc
        raise
    except OSError as exc:
        # asyncpg surfaces refused/timed-out connects unwrapped
        raise StoreUnavailableError("Database unreachable") from exc
