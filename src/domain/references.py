"""
Explicit lists of the tables that reference tenants and users.

The reference rewriter, the account purge and the consistency validator all
work from these lists. Bump the version when a dependent table is added so
merge reports and audit events say which set they were produced with.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class TableReference:
    """A (table, foreign-key column) pair.

    unique_with names the column that forms a unique key together with the
    foreign key; rewriting must drop source rows that would collide.
    """

    table: str
    column: str
    unique_with: Optional[str] = None


@dataclass(frozen=True)
class ReferenceSet:
    version: int
    references: Tuple[TableReference, ...]

    @property
    def tables(self) -> Tuple[str, ...]:
        return tuple(ref.table for ref in self.references)


@dataclass(frozen=True)
class ReferenceCheck:
    """A table probed by the consistency validator over one or more columns"""

    table: str
    columns: Tuple[str, ...]


TENANT_REFERENCES = ReferenceSet(
    version=1,
    references=(
        TableReference("tenant_memberships", "tenant_id", unique_with="user_id"),
        TableReference("app_settings", "tenant_id", unique_with="key"),
        TableReference("user_profiles", "tenant_id"),
        TableReference("locations", "tenant_id"),
        TableReference("sales", "tenant_id"),
        TableReference("expenses", "tenant_id"),
    ),
)

# Purge order: rows with foreign keys into user_profiles go first.
USER_OWNED_REFERENCES = ReferenceSet(
    version=1,
    references=(
        TableReference("user_subscriptions", "user_id"),
        TableReference("user_promotions", "user_id"),
        TableReference("tenant_memberships", "user_id"),
        TableReference("user_profiles", "id"),
    ),
)

USER_LOOKUP_COLUMNS: Tuple[str, ...] = ("id", "user_id", "created_by")

USER_REFERENCE_TABLES: Tuple[str, ...] = (
    "user_profiles",
    "tenants",
    "tenant_memberships",
    "user_subscriptions",
    "user_promotions",
    "locations",
    "sales",
    "expenses",
)


def user_reference_checks(tables: Tuple[str, ...] = USER_REFERENCE_TABLES) -> Tuple[ReferenceCheck, ...]:
    return tuple(ReferenceCheck(table, USER_LOOKUP_COLUMNS) for table in tables)


def tenant_reference_checks(reference_set: ReferenceSet = TENANT_REFERENCES) -> Tuple[ReferenceCheck, ...]:
    return tuple(ReferenceCheck(ref.table, (ref.column,)) for ref in reference_set.references)
