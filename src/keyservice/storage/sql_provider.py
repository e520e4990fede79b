# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
SQL Principal Store.

Async SQLAlchemy backend for PostgreSQL (asyncpg) and SQLite (aiosqlite).
One table per partition, named ``<database>_<collection>``. The engine uses
``NullPool``, so every operation opens its own connection and closes it
when the transaction ends. Upserts are a single
``INSERT ... ON CONFLICT DO UPDATE``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import JSON, BigInteger, Column, MetaData, String, Table, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine
from sqlalchemy.pool import NullPool

from keyservice.config import StoreLocation
from keyservice.constants import PrincipalType
from keyservice.exceptions import StoreError
from keyservice.identity.models import BundleRecord, PrincipalRecord

from .provider import AbstractPrincipalStore

logger = logging.getLogger(__name__)


def _table_name(location: StoreLocation) -> str:
    return f"{location.database}_{location.collection}"


class SQLPrincipalStore(AbstractPrincipalStore):
    """
    SQL principal store.

    Requires ``asyncpg`` for PostgreSQL URLs or ``aiosqlite`` for SQLite.

    Args:
        url: SQLAlchemy async database URL.
        locations: Partition per principal type.
        clock: Current unix time source.
    """

    def __init__(self, url: str = "sqlite+aiosqlite:///keyservice.db", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._engine = create_async_engine(url, poolclass=NullPool, hide_parameters=True)
        self._metadata = MetaData()
        self._bundle_table = self._define_bundle_table(self.locations.bundle)
        self._record_tables: dict[str, Table] = {}
        for principal_type in PrincipalType:
            location = self.locations.for_type(principal_type)
            self._record_tables[_table_name(location)] = self._define_record_table(location)
        self._schema_ready = False

    # Schema

    def _define_bundle_table(self, location: StoreLocation) -> Table:
        return Table(
            _table_name(location),
            self._metadata,
            Column("user_id", String(255), primary_key=True),
            Column("generated", BigInteger, nullable=False),
            Column("keys", JSON, nullable=False),
        )

    def _define_record_table(self, location: StoreLocation) -> Table:
        return Table(
            _table_name(location),
            self._metadata,
            Column("principal_id", String(255), primary_key=True),
            Column("generated", BigInteger, nullable=False),
            Column("key", String(255), nullable=False),
            Column("secret", String(255), nullable=False),
        )

    def _record_table(self, location: StoreLocation) -> Table:
        return self._record_tables[_table_name(location)]

    async def create_schema(self) -> None:
        """Create partition tables that do not exist yet."""
        async with self._connection(ensure_schema=False) as conn:
            await conn.run_sync(self._metadata.create_all)
        self._schema_ready = True

    @asynccontextmanager
    async def _connection(self, ensure_schema: bool = True) -> AsyncIterator[AsyncConnection]:
        """Open a connection and transaction for one operation."""
        if ensure_schema and not self._schema_ready:
            await self.create_schema()
        try:
            async with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            logger.error("SQL operation failed: %s", exc)
            raise StoreError(f"SQL operation failed: {exc}") from exc

    def _upsert(self, table: Table, key_column: str, values: dict[str, Any]) -> Any:
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise StoreError(f"Unsupported SQL dialect for upsert: {dialect}")
        stmt = insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[table.c[key_column]],
            set_={name: stmt.excluded[name] for name in values if name != key_column},
        )

    async def health_check(self) -> bool:
        try:
            async with self._connection(ensure_schema=False) as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except StoreError:
            return False

    async def close(self) -> None:
        await self._engine.dispose()

    # Bundles

    async def _put_bundle(self, location: StoreLocation, record: BundleRecord) -> None:
        doc = record.to_document()
        async with self._connection() as conn:
            await conn.execute(self._upsert(self._bundle_table, "user_id", doc))

    async def _get_bundle(self, location: StoreLocation, user_id: str) -> Optional[BundleRecord]:
        table = self._bundle_table
        async with self._connection() as conn:
            result = await conn.execute(select(table).where(table.c.user_id == user_id))
            row = result.mappings().first()
        return None if row is None else BundleRecord.from_document(dict(row))

    # Key/secret pairs

    async def _put_record(self, location: StoreLocation, record: PrincipalRecord) -> None:
        async with self._connection() as conn:
            await conn.execute(
                self._upsert(self._record_table(location), "principal_id", record.to_document())
            )

    async def _get_record(
        self,
        location: StoreLocation,
        principal_type: PrincipalType,
        principal_id: str,
    ) -> Optional[PrincipalRecord]:
        table = self._record_table(location)
        async with self._connection() as conn:
            result = await conn.execute(select(table).where(table.c.principal_id == principal_id))
            row = result.mappings().first()
        return None if row is None else PrincipalRecord.from_document(principal_type, dict(row))

    async def _count(self, location: StoreLocation, principal_id: str, key: str, secret: str) -> int:
        table = self._record_table(location)
        stmt = (
            select(func.count())
            .select_from(table)
            .where(
                table.c.principal_id == principal_id,
                table.c["key"] == key,
                table.c.secret == secret,
            )
        )
        async with self._connection() as conn:
            result = await conn.execute(stmt)
            return int(result.scalar_one())
