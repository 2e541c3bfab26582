"""
Diagnostics DTOs (Data Transfer Objects)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TableReferenceResult(BaseModel):
    """References to one identifier found in one table"""

    table: str
    columns: List[str] = Field(default_factory=list)
    count: int = 0
    sample: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


class ReferenceReportResponse(BaseModel):
    """Response for validate references use case"""

    identifier: str
    tables: List[TableReferenceResult] = Field(default_factory=list)
    total_references: int = 0
    clean: bool = True
