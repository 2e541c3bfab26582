from typing import Any, Dict, List, Optional, Sequence, Tuple, Type
from uuid import UUID

from sqlalchemy import delete, func, inspect, or_, update
from sqlalchemy.orm import aliased
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.reference_repository import IReferenceRepository
from src.app.services.errors import StoreError
from src.domain.entities import (
    AppSetting,
    Expense,
    Location,
    Sale,
    Tenant,
    TenantMembership,
    UserProfile,
    UserPromotion,
    UserSubscription,
)

# Tables reachable through table-generic operations
ENTITIES_BY_TABLE: Dict[str, Type[SQLModel]] = {
    entity.__tablename__: entity
    for entity in (
        Tenant,
        TenantMembership,
        UserProfile,
        AppSetting,
        UserSubscription,
        UserPromotion,
        Location,
        Sale,
        Expense,
    )
}

_SKIP = object()


def _coerce(column, value: Any) -> Any:
    """Convert value to the column's python type, or _SKIP if it cannot hold it"""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return _SKIP
    if isinstance(value, python_type):
        return value
    try:
        if python_type is UUID:
            return UUID(str(value))
        if python_type is int:
            return int(str(value))
        if python_type is str:
            return str(value)
    except (TypeError, ValueError):
        return _SKIP
    return _SKIP


class ReferenceRepository(IReferenceRepository):
    """Table-generic reference operations using SQLModel entities"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _entity(table: str) -> Type[SQLModel]:
        entity = ENTITIES_BY_TABLE.get(table)
        if entity is None:
            raise StoreError(f"unknown table '{table}'")
        return entity

    async def reassign(
        self,
        table: str,
        column: str,
        source: Any,
        destination: Any,
        unique_with: Optional[str] = None,
    ) -> int:
        entity = self._entity(table)
        fk = getattr(entity, column)

        if unique_with:
            # Source rows whose key already exists at the destination lose to it
            key = getattr(entity, unique_with)
            existing = aliased(entity)
            taken = select(getattr(existing, unique_with)).where(
                getattr(existing, column) == destination
            )
            stmt = (
                delete(entity)
                .where(fk == source, key.in_(taken))
                .execution_options(synchronize_session=False)
            )
            await self.session.execute(stmt)

        stmt = (
            update(entity)
            .where(fk == source)
            .values({fk: destination})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def delete_matching(self, table: str, column: str, value: Any) -> int:
        entity = self._entity(table)
        stmt = (
            delete(entity)
            .where(getattr(entity, column) == value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def fetch_matching(self, table: str, column: str, value: Any) -> List[SQLModel]:
        entity = self._entity(table)
        stmt = select(entity).where(getattr(entity, column) == value)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def insert_missing(self, table: str, rows: Sequence[Dict[str, Any]]) -> int:
        entity = self._entity(table)
        primary_key = inspect(entity).primary_key
        inserted = 0
        for row in rows:
            instance = entity.model_validate(row)
            identity = tuple(getattr(instance, col.key) for col in primary_key)
            if await self.session.get(entity, identity) is not None:
                continue
            self.session.add(instance)
            inserted += 1
        await self.session.flush()
        return inserted

    async def count_matching(
        self, table: str, columns: Sequence[str], value: Any, sample_limit: int
    ) -> Tuple[List[str], int, List[Dict[str, Any]]]:
        entity = self._entity(table)
        table_columns = entity.__table__.columns

        checked: List[str] = []
        clauses = []
        for name in columns:
            column = table_columns.get(name)
            if column is None:
                continue
            coerced = _coerce(column, value)
            if coerced is _SKIP:
                continue
            checked.append(name)
            clauses.append(column == coerced)

        if not clauses:
            return checked, 0, []

        condition = or_(*clauses)
        count_stmt = select(func.count()).select_from(entity).where(condition)
        count = (await self.session.execute(count_stmt)).scalar_one()

        sample: List[Dict[str, Any]] = []
        if count and sample_limit > 0:
            stmt = select(entity).where(condition).limit(sample_limit)
            result = await self.session.exec(stmt)
            sample = [row.model_dump(mode="json") for row in result.all()]
        return checked, count, sample
