from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlmodel import SQLModel


class IReferenceRepository(ABC):
    """
    Table-generic row operations keyed by table name and column.

    Used for the dependent tables listed in src.domain.references, so that
    the rewriter, purge and validator never need a repository per table.
    """

    @abstractmethod
    async def reassign(
        self,
        table: str,
        column: str,
        source: Any,
        destination: Any,
        unique_with: Optional[str] = None,
    ) -> int:
        """
        Point every row with column == source at destination.

        When unique_with is given, source rows whose unique_with value already
        exists at destination are deleted instead of moved.

        Returns:
            Number of rows moved
        """
        pass

    @abstractmethod
    async def delete_matching(self, table: str, column: str, value: Any) -> int:
        """Delete rows where column == value. Returns number of rows deleted"""
        pass

    @abstractmethod
    async def fetch_matching(self, table: str, column: str, value: Any) -> List[SQLModel]:
        """Get entities where column == value"""
        pass

    @abstractmethod
    async def insert_missing(self, table: str, rows: Sequence[Dict[str, Any]]) -> int:
        """Insert rows (as dumped entities) whose primary key is absent. Returns inserted count"""
        pass

    @abstractmethod
    async def count_matching(
        self, table: str, columns: Sequence[str], value: Any, sample_limit: int
    ) -> Tuple[List[str], int, List[Dict[str, Any]]]:
        """
        Count rows where any of columns equals value.

        Columns missing from the table, or unable to hold value, are skipped.

        Returns:
            (columns actually checked, count, sample rows)
        """
        pass
