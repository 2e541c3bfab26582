"""
Diagnostics Use Cases

Read-only consistency checks over the relational store.
"""

from .validate_references_use_case import ValidateReferencesUseCase
from .dtos import ReferenceReportResponse, TableReferenceResult

__all__ = [
    "ValidateReferencesUseCase",
    "ReferenceReportResponse",
    "TableReferenceResult",
]
