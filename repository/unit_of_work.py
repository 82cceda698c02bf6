import logging
from typing import Awaitable, Callable, TypeVar

from repository.base import Store, current_executor


logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """Runs an operation so that every store call inside it shares one transaction"""

    def __init__(self, store: Store):
        self._store = store

    async def run(self, op: Callable[[], Awaitable[T]]) -> T:
        """
        Bind a fresh executor, await ``op`` and commit.

        Any exception, cancellation included, rolls the scope back and is re-raised.
        Nested scopes are not supported.
        """
        if current_executor.get() is not None:
            raise RuntimeError("nested transactions are not supported")

        executor = await self._store.begin()
        token = current_executor.set(executor)
        try:
            result = await op()
        except BaseException as err:
            try:
                await executor.rollback()
            except Exception as rb_err:
                logger.error("rollback failed: %r (original error: %r)", rb_err, err)
            raise
        else:
            await executor.commit()
            return result
        finally:
            current_executor.reset(token)
            await executor.close()
