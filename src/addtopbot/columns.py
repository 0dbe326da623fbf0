"""Column resolution: turn --chrom/--position/--A/--B/--AB identifiers into a ColumnPlan.

Identifiers are either 0-based indices (used as-is) or header names (looked up
once in the header row). The resulting plan is immutable for the rest of the run.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set

from .models import AnnotateOptions, ColumnPlan, ColumnRef
from .validation import ConfigError

logger = logging.getLogger(__name__)


def header_lookup(header: Sequence[str]) -> tuple[Dict[str, int], Set[str]]:
    """Map header names to indices; also return the set of names that occur more than once."""
    lookup: Dict[str, int] = {}
    dupes: Set[str] = set()
    for i, name in enumerate(header):
        if name in lookup:
            dupes.add(name)
        lookup[name] = i
    return lookup, dupes


def resolve_column(
    ref: ColumnRef,
    *,
    n_columns: Optional[int],
    lookup: Optional[Dict[str, int]] = None,
    dupes: Optional[Set[str]] = None,
) -> int:
    if ref.index is not None:
        idx = ref.index
    else:
        if lookup is None:
            raise ConfigError(f"Column {ref.name} cannot be resolved without a header line.")
        if dupes and ref.name in dupes:
            raise ConfigError(f"Column {ref.name} is ambiguous: it appears more than once in the header.")
        if ref.name not in lookup:
            raise ConfigError(f"Column {ref.name} not found.")
        idx = lookup[ref.name]  # type: ignore[index]

    if n_columns is not None and idx >= n_columns:
        raise ConfigError(f"Column {idx} is out of range for a line with {n_columns} columns.")
    return idx


def build_column_plan(
    opts: AnnotateOptions,
    first_fields: Sequence[str],
) -> ColumnPlan:
    """Build the ColumnPlan from the header row (or the first data row with --noheader)."""
    n_columns = len(first_fields)
    lookup: Optional[Dict[str, int]] = None
    dupes: Optional[Set[str]] = None
    if opts.header:
        lookup, dupes = header_lookup(first_fields)

    def _resolve(ref: Optional[ColumnRef]) -> Optional[int]:
        if ref is None:
            return None
        # with no header, short rows are reported per record instead
        limit = n_columns if opts.header else None
        return resolve_column(ref, n_columns=limit, lookup=lookup, dupes=dupes)

    insert_at = n_columns if opts.insert_col is None else opts.insert_col
    if insert_at > n_columns:
        raise ConfigError(
            f"--insertcol {insert_at} is beyond the last column (line has {n_columns} columns)."
        )

    plan = ColumnPlan(
        chrom=_resolve(opts.chrom),  # type: ignore[arg-type]
        position=_resolve(opts.position),  # type: ignore[arg-type]
        allele_a=_resolve(opts.allele_a),
        allele_b=_resolve(opts.allele_b),
        allele_ab=_resolve(opts.allele_ab),
        n_columns=n_columns,
        insert_at=insert_at,
    )
    logger.info("Column plan: %s", plan)
    return plan


def splice_field(fields: Sequence[str], at: int, value: str) -> List[str]:
    """Return a copy of ``fields`` with ``value`` inserted at index ``at``."""
    out = list(fields)
    out.insert(at, value)
    return out
