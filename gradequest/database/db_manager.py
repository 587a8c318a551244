import logging
import os
from functools import wraps
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

T = TypeVar('T')

logger = logging.getLogger(__name__)


def require_connection(func: Callable) -> Callable:
    '''Ensure DBManager is used within a context manager.'''

    @wraps(func)
    def wrapper(self: 'DBManager', *args, **kwargs) -> Any:
        if self._conn is None:
            raise RuntimeError('DBManager is not in a context. Use "with DBManager() as db:"')
        return func(self, *args, **kwargs)

    return wrapper


def _database_url(db_url: Optional[str] = None) -> str:
    conninfo = db_url or os.getenv('DATABASE_URL')
    if not conninfo:
        raise RuntimeError('DATABASE_URL is not set; GradeQuest stores its data in Postgres.')
    return conninfo


class DBManager:
    '''One Postgres transaction: commits on a clean exit, rolls back otherwise.'''

    # Shared across the process once init_pool() has run
    _pool: Optional[ConnectionPool] = None

    def __init__(self) -> None:
        self._conn: Optional[psycopg.Connection] = None
        self._from_pool = False

    @classmethod
    def init_pool(
        cls, db_url: Optional[str] = None, min_size: int = 1, max_size: int = 10
    ) -> None:
        if cls._pool is not None:
            return
        cls._pool = ConnectionPool(
            conninfo=_database_url(db_url),
            min_size=min_size,
            max_size=max_size,
            kwargs={'row_factory': dict_row},
        )
        logger.info('Initialized Postgres connection pool')

    @classmethod
    def close_pool(cls) -> None:
        if cls._pool is not None:
            try:
                cls._pool.close()
            finally:
                cls._pool = None

    def _open(self) -> None:
        if self.__class__._pool is not None:
            self._conn = self.__class__._pool.getconn()
            self._from_pool = True
        else:
            self._conn = psycopg.connect(_database_url(), row_factory=dict_row)
            self._from_pool = False

    def _release(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        if self._from_pool and self.__class__._pool is not None:
            # A broken connection is discarded by the pool on return
            self.__class__._pool.putconn(conn)
        else:
            conn.close()
        self._from_pool = False

    def __enter__(self) -> 'DBManager':
        self._open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._conn is None:
            return
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            self._release()

    def _reconnect(self) -> None:
        try:
            self._release()
        except psycopg.Error as e:
            logger.warning(f'Error while closing connection during reconnect: {e}')
        self._open()

    def _run_with_retry(self, fn: Callable[[], T]) -> T:
        '''Run fn; on a dropped connection reconnect and retry once.'''
        try:
            return fn()
        except (psycopg.OperationalError, psycopg.InterfaceError) as e:
            logger.warning(f'DB operation failed due to connection issue: {e}. Retrying once...')
            self._reconnect()
            return fn()

    def _select(self, query: str, params: Iterable[Any] | None) -> List[dict[str, Any]]:
        assert self._conn is not None
        with self._conn.cursor() as cur:
            cur.execute(query, tuple(params or ()))
            return cur.fetchall() if cur.description else []

    def _exec(self, query: str, params: Iterable[Any] | None) -> None:
        assert self._conn is not None
        with self._conn.cursor() as cur:
            cur.execute(query, tuple(params or ()))

    @require_connection
    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        try:
            self._run_with_retry(lambda: self._exec(query, params))
        except Exception as e:
            logger.error(f'Postgres execute() error: {e}\nQuery: {query}\nParams: {params}')
            raise

    @require_connection
    def executemany(self, query: str, param_list: Iterable[Sequence[Any]]) -> None:
        rows = list(param_list)

        def _do() -> None:
            assert self._conn is not None
            with self._conn.cursor() as cur:
                cur.executemany(query, rows)

        try:
            self._run_with_retry(_do)
        except Exception as e:
            logger.error(f'Postgres executemany() error: {e}\nQuery: {query}')
            raise

    @require_connection
    def fetchall(self, query: str, params: Iterable[Any] | None = None) -> List[dict[str, Any]]:
        try:
            return self._run_with_retry(lambda: self._select(query, params))
        except Exception as e:
            logger.error(f'Postgres fetchall() error: {e}\nQuery: {query}\nParams: {params}')
            raise

    @require_connection
    def fetchone(self, query: str, params: Iterable[Any] | None = None) -> Optional[dict[str, Any]]:
        rows = self.fetchall(query, params)
        return rows[0] if rows else None

    @require_connection
    def advisory_lock(self, key: str) -> None:
        '''Hold a transaction-scoped advisory lock on `key` until commit/rollback.

        Not retried: a reconnect would silently drop the lock.
        '''
        self._exec('SELECT pg_advisory_xact_lock(hashtext(%s))', (key,))
