"""Strand resolution client.

The pipeline never performs genomic logic itself. It asks a ``StrandOracle``
(by default :class:`addtopbot.topbot.FastaTopBotOracle`) for a TOP/BOT code and
only enforces two local rules:

- a failed allele extraction short-circuits the oracle and becomes the result;
- any oracle answer starting with ``ERROR`` is an error result.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .models import (
    ERROR_BAD_POSITION,
    ERROR_MISSING_FIELD,
    AlleleCall,
    ColumnPlan,
    StrandResult,
)

logger = logging.getLogger(__name__)


class StrandOracle(Protocol):
    def resolve_strand(self, chrom: str, position: int, allele_a: str, allele_b: str) -> str:
        """Return ``TOP``/``BOT`` or an ``ERROR_*`` code for a 1-based locus."""
        ...


class StrandResolutionClient:
    def __init__(self, oracle: StrandOracle, *, chrom_prefix: str = "") -> None:
        self.oracle = oracle
        self.chrom_prefix = chrom_prefix

    def resolve(self, fields: Sequence[str], plan: ColumnPlan, call: AlleleCall) -> StrandResult:
        if not call.ok:
            return StrandResult(code=str(call.error))

        if plan.chrom >= len(fields) or plan.position >= len(fields):
            return StrandResult(code=ERROR_MISSING_FIELD)

        pos_text = fields[plan.position].strip()
        try:
            position = int(pos_text)
        except ValueError:
            return StrandResult(code=ERROR_BAD_POSITION)
        if not pos_text.isascii() or not pos_text.isdigit() or position < 1:
            return StrandResult(code=ERROR_BAD_POSITION)

        chrom = f"{self.chrom_prefix}{fields[plan.chrom]}"
        code = self.oracle.resolve_strand(
            chrom,
            position,
            str(call.allele_a),
            str(call.allele_b),
        )
        logger.debug("%s:%s %s/%s -> %s", chrom, pos_text, call.allele_a, call.allele_b, code)
        return StrandResult(code=str(code))
