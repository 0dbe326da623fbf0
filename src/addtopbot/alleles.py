from __future__ import annotations

from typing import List, Optional, Sequence

from .models import ERROR_NOT_AGCT, VALID_BASES, AlleleCall, ColumnPlan


def _field(fields: Sequence[str], idx: Optional[int]) -> Optional[str]:
    if idx is None or idx >= len(fields):
        return None
    return fields[idx]


def scan_bases(text: str) -> List[str]:
    """Collect the uppercase A/C/G/T characters of ``text`` in left-to-right order."""
    return [ch for ch in text if ch in VALID_BASES]


def extract_combined(text: Optional[str]) -> AlleleCall:
    if text is None:
        return AlleleCall(error=ERROR_NOT_AGCT)
    matches = scan_bases(text)
    if len(matches) != 2:
        return AlleleCall(error=ERROR_NOT_AGCT)
    return AlleleCall(allele_a=matches[0], allele_b=matches[1])


def extract_split(a: Optional[str], b: Optional[str]) -> AlleleCall:
    if a is None or b is None or a not in VALID_BASES or b not in VALID_BASES:
        return AlleleCall(error=ERROR_NOT_AGCT)
    return AlleleCall(allele_a=a, allele_b=b)


def extract_alleles(fields: Sequence[str], plan: ColumnPlan) -> AlleleCall:
    """Extract the allele pair for one record according to the plan's allele mode."""
    if plan.combined:
        return extract_combined(_field(fields, plan.allele_ab))
    return extract_split(_field(fields, plan.allele_a), _field(fields, plan.allele_b))
