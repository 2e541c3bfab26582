"""
Tenant name normalization, duplicate grouping and keeper selection.

Pure functions, no I/O. Order of the normalization steps matters: the second
boilerplate strip only matches once the possessive marker is gone.
"""

import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.domain.entities import Tenant

DEFAULT_BOILERPLATE_SUFFIXES: Tuple[str, ...] = ("pos",)
DEFAULT_BUSINESS_NOUNS: Tuple[str, ...] = ("company",)

_APOSTROPHES = re.compile(r"[’‘`]+")
_SEPARATORS = re.compile(r"[_.]+")
_WHITESPACE = re.compile(r"\s+")
_POSSESSIVE = re.compile(r"'s\s*$", re.IGNORECASE)


def _alternation(words: Iterable[str]) -> Optional[str]:
    escaped = [re.escape(w.strip()) for w in words if w and w.strip()]
    if not escaped:
        return None
    return "|".join(escaped)


def _collapse(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


class TenantNameNormalizer:
    """
    Maps a raw tenant name to its canonical display name.

    Boilerplate suffixes (product branding such as "POS") and business nouns
    (such as "Company") are configurable.
    """

    def __init__(
        self,
        boilerplate_suffixes: Sequence[str] = DEFAULT_BOILERPLATE_SUFFIXES,
        business_nouns: Sequence[str] = DEFAULT_BUSINESS_NOUNS,
    ):
        suffixes = _alternation(boilerplate_suffixes)
        nouns = _alternation(business_nouns)

        self._suffix_with_possessive = (
            re.compile(rf"\b(?:{suffixes})(?:'s)?\s*$", re.IGNORECASE) if suffixes else None
        )
        self._suffix = re.compile(rf"\b(?:{suffixes})\s*$", re.IGNORECASE) if suffixes else None
        self._noun = re.compile(rf"\b(?:{nouns})\b\s*$", re.IGNORECASE) if nouns else None

    def _strip_trailing(self, name: str) -> str:
        if self._suffix_with_possessive is not None:
            name = self._suffix_with_possessive.sub("", name).strip()
        if self._noun is not None:
            name = self._noun.sub("", name).strip()
        name = _POSSESSIVE.sub("", name).strip()
        if self._suffix is not None:
            name = self._suffix.sub("", name).strip()
        return name

    def normalize(self, raw: Optional[str]) -> str:
        if not raw:
            return ""

        name = str(raw).strip()
        name = _APOSTROPHES.sub("'", name)
        name = _SEPARATORS.sub(" ", name)
        name = _collapse(name)

        # Repeat until stable so stacked suffixes ("Acme Company Company")
        # normalize in one pass.
        previous = None
        while name != previous:
            previous = name
            name = self._strip_trailing(name)

        name = _collapse(name)
        return " ".join(word[:1].upper() + word[1:] for word in name.split(" ") if word)

    __call__ = normalize


_default_normalizer = TenantNameNormalizer()


def normalize_tenant_name(raw: Optional[str]) -> str:
    """Normalize with the default suffix sets"""
    return _default_normalizer.normalize(raw)


def group_by_normalized_name(
    tenants: Iterable[Tenant],
    normalizer: Optional[TenantNameNormalizer] = None,
) -> Dict[str, List[Tenant]]:
    """
    Group tenants by normalized name, preserving input order.

    Tenants whose name normalizes to "" are left out of merge consideration.
    """
    normalize = normalizer or _default_normalizer
    groups: Dict[str, List[Tenant]] = {}
    for tenant in tenants:
        key = normalize(tenant.name)
        if not key:
            continue
        groups.setdefault(key, []).append(tenant)
    return groups


def _keeper_sort_key(tenant: Tenant) -> Tuple[bool, datetime, int]:
    return (
        tenant.created_at is None,
        tenant.created_at or datetime.min,
        tenant.id if tenant.id is not None else 0,
    )


def select_keeper(group: Sequence[Tenant]) -> Tuple[Tenant, List[Tenant]]:
    """
    Pick the earliest-created tenant as keeper; ties go to the lowest id.

    Returns:
        (keeper, duplicates) with duplicates in keeper order
    """
    if not group:
        raise ValueError("Cannot select a keeper from an empty group")
    ordered = sorted(group, key=_keeper_sort_key)
    return ordered[0], ordered[1:]
