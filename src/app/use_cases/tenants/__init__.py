"""
Tenant Integrity Use Cases

Duplicate detection and merging of tenant records.
"""

from .dtos import DuplicateFailure, MergeGroupResult, MergeTenantsResponse
from .merge_tenants_use_case import MergeTenantsUseCase

__all__ = [
    "MergeTenantsUseCase",
    "MergeTenantsResponse",
    "MergeGroupResult",
    "DuplicateFailure",
]
