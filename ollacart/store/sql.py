"""
Backend SQL du store d'entités (SQLAlchemy Core sur moteur async).

Une transaction par opération. Les erreurs de connexion deviennent
StorageUnavailable, les violations d'unicité DuplicateRecordError.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Tuple

from sqlalchemy import and_, delete, insert, select, true, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ollacart.core.exceptions import DuplicateRecordError, StorageUnavailable
from ollacart.core.logging import get_logger
from ollacart.db.session import make_engine
from ollacart.models import Base
from ollacart.store.base import Collection, Row, Store
from ollacart.store.mapping import EntitySchema

logger = get_logger(__name__)


class SQLCollection(Collection):

    def __init__(self, schema: EntitySchema, engine: AsyncEngine):
        super().__init__(schema)
        self._engine = engine
        self.table = Base.metadata.tables[schema.collection]

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with self._engine.begin() as conn:
                yield conn
        except IntegrityError as e:
            raise DuplicateRecordError(f"Duplicate {self.name}: {e.orig}", entity=self.name) from e
        except (OperationalError, InterfaceError, OSError) as e:
            logger.warning(
                f"Store unreachable on {self.name}",
                entity=self.name,
                error_type=type(e).__name__,
            )
            raise StorageUnavailable(f"{self.name}: {e}", entity=self.name) from e

    def _clause(self, where: Row):
        clauses = []
        for column, condition in where.items():
            col = self.table.c[column]
            if isinstance(condition, dict):
                if "in" in condition:
                    clauses.append(col.in_(condition["in"]))
                if "gte" in condition:
                    clauses.append(col >= condition["gte"])
                if "lte" in condition:
                    clauses.append(col <= condition["lte"])
            elif condition is None:
                clauses.append(col.is_(None))
            else:
                clauses.append(col == condition)
        return and_(true(), *clauses)

    async def _fetch(self, conn: AsyncConnection, id: str) -> Optional[Row]:
        result = await conn.execute(select(self.table).where(self.table.c.id == id))
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def _insert(self, row: Row) -> Row:
        async with self._begin() as conn:
            await conn.execute(insert(self.table).values(**row))
            return await self._fetch(conn, row["id"])

    async def _select(
        self,
        where: Row,
        order: Tuple[Tuple[str, bool], ...],
        limit: Optional[int],
        offset: int,
    ) -> List[Row]:
        stmt = select(self.table).where(self._clause(where))
        for column, descending in order:
            col = self.table.c[column]
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._begin() as conn:
            result = await conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    async def _update(self, id: str, values: Row) -> Optional[Row]:
        async with self._begin() as conn:
            if values:
                await conn.execute(update(self.table).where(self.table.c.id == id).values(**values))
            return await self._fetch(conn, id)

    async def _update_where(self, where: Row, values: Row) -> int:
        async with self._begin() as conn:
            result = await conn.execute(update(self.table).where(self._clause(where)).values(**values))
            return result.rowcount

    async def _increment(self, id: str, deltas: Row) -> Optional[Row]:
        # col = col + delta côté base, pas de lecture-puis-écriture
        values = {column: self.table.c[column] + delta for column, delta in deltas.items()}
        async with self._begin() as conn:
            await conn.execute(update(self.table).where(self.table.c.id == id).values(**values))
            return await self._fetch(conn, id)

    async def _delete(self, where: Row) -> int:
        async with self._begin() as conn:
            result = await conn.execute(delete(self.table).where(self._clause(where)))
            return result.rowcount


class SQLStore(Store):

    def __init__(self, url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        self.engine = engine or make_engine(url)
        super().__init__()

    def _collection(self, schema: EntitySchema) -> SQLCollection:
        return SQLCollection(schema, self.engine)

    async def open(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL store ready", tables=len(Base.metadata.tables))

    async def close(self) -> None:
        await self.engine.dispose()
