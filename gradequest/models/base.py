from contextlib import contextmanager
from typing import Any, ClassVar, Iterable, Iterator, Optional, Sequence, cast

from psycopg.types.json import Json

from gradequest.database.db_manager import DBManager


@contextmanager
def use_db(db: Optional[DBManager] = None) -> Iterator[DBManager]:
    '''Reuse an open DBManager, or open a transaction of our own.'''
    if db is not None:
        yield db
        return
    with DBManager() as fresh:
        yield fresh


def _adapt(value: Any) -> Any:
    # dicts/lists go to JSONB columns
    return Json(value) if isinstance(value, (dict, list)) else value


class BaseModel:
    table: ClassVar[str]

    @classmethod
    def get_one(
        cls, where: str, params: Iterable[Any] = (), db: Optional[DBManager] = None
    ) -> Optional[dict[str, Any]]:
        where_clause = f' WHERE {where}' if where else ''
        with use_db(db) as conn:
            row = conn.fetchone(f'SELECT * FROM {cls.table}{where_clause} LIMIT 1', tuple(params))
        return cast(Optional[dict[str, Any]], row)

    @classmethod
    def get_many(
        cls,
        where: str = '',
        params: Iterable[Any] = (),
        order_by: str = '',
        limit: Optional[int] = None,
        db: Optional[DBManager] = None,
    ) -> list[dict[str, Any]]:
        query_parts: list[str] = [f'SELECT * FROM {cls.table}']
        parameters: tuple[Any, ...] = tuple(params)

        if where:
            query_parts.append(f'WHERE {where}')
        if order_by:
            query_parts.append(f'ORDER BY {order_by}')
        if limit is not None:
            query_parts.append('LIMIT %s')
            parameters = (*parameters, limit)

        with use_db(db) as conn:
            rows = conn.fetchall(' '.join(query_parts), parameters)
        return cast(list[dict[str, Any]], rows)

    @classmethod
    def insert_ignore(
        cls,
        conflict_cols: Sequence[str],
        values: dict[str, Any],
        db: Optional[DBManager] = None,
    ) -> Optional[dict[str, Any]]:
        '''Insert unless the conflict key exists; None when nothing was inserted.'''
        cols = list(values.keys())
        placeholders = ', '.join(['%s'] * len(cols))
        sql = (
            f'INSERT INTO {cls.table} ({", ".join(cols)}) VALUES ({placeholders}) '
            f'ON CONFLICT ({", ".join(conflict_cols)}) DO NOTHING RETURNING *'
        )
        with use_db(db) as conn:
            row = conn.fetchone(sql, tuple(_adapt(values[c]) for c in cols))
        return cast(Optional[dict[str, Any]], row)

    @classmethod
    def delete_where(cls, where: str, params: Iterable[Any] = (), db: Optional[DBManager] = None) -> None:
        with use_db(db) as conn:
            conn.execute(f'DELETE FROM {cls.table} WHERE {where}', tuple(params))
