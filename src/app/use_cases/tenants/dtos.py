"""
Tenant Use Case DTOs (Data Transfer Objects)

Response classes for the tenant merge pass.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Response DTOs
# ============================================================================


class DuplicateFailure(BaseModel):
    """A duplicate that was kept because its references could not be confirmed rewritten"""

    tenant_id: int
    tables: Dict[str, str] = Field(default_factory=dict)


class MergeGroupResult(BaseModel):
    """Outcome for one normalized-name group"""

    normalized_name: str
    keeper_id: Optional[int] = None
    renamed: bool = False
    duplicate_ids: List[int] = Field(default_factory=list)
    removed_ids: List[int] = Field(default_factory=list)
    failures: List[DuplicateFailure] = Field(default_factory=list)
    error: Optional[str] = None


class MergeTenantsResponse(BaseModel):
    """Response for merge tenants use case"""

    dry_run: bool
    reference_version: int
    tenants_examined: int
    groups_examined: int
    groups: List[MergeGroupResult] = Field(default_factory=list)
    removed_total: int = 0
    failed_total: int = 0
    groups_errored: int = 0
