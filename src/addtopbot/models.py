from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ERROR_PREFIX = "ERROR"

ERROR_NOT_AGCT = "ERROR_not_AGCT"
ERROR_MISSING_FIELD = "ERROR_missing_field"
ERROR_BAD_POSITION = "ERROR_bad_position"

VALID_BASES = frozenset("ACGT")


@dataclass(frozen=True)
class ColumnRef:
    """A user-supplied column identifier: either a 0-based index or a header name.

    Exactly one of ``index`` / ``name`` is set.
    """

    index: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def parse(cls, value: str | int) -> "ColumnRef":
        if isinstance(value, int):
            if value < 0:
                raise ValueError(f"Column index must be 0 or greater, got {value}")
            return cls(index=value)
        text = str(value)
        if text.isascii() and text.isdigit():
            return cls(index=int(text))
        return cls(name=text)

    @property
    def is_index(self) -> bool:
        return self.index is not None

    def __str__(self) -> str:
        return str(self.index) if self.index is not None else str(self.name)


@dataclass(frozen=True)
class ColumnPlan:
    """Resolved column layout for one run.

    Attributes
    ----------
    chrom, position:
        0-based indices of the chromosome and 1-based position fields.
    allele_a, allele_b:
        Indices of the split allele columns (``None`` in combined mode).
    allele_ab:
        Index of the combined allele column (``None`` in split mode).
    n_columns:
        Number of fields in the header (or first data row with no header).
    insert_at:
        Index at which the TOPBOT field is spliced into each output record.
    """

    chrom: int
    position: int
    allele_a: Optional[int]
    allele_b: Optional[int]
    allele_ab: Optional[int]
    n_columns: int
    insert_at: int

    @property
    def combined(self) -> bool:
        return self.allele_ab is not None


@dataclass(frozen=True)
class AlleleCall:
    """Alleles extracted from a record, or the local error explaining why not."""

    allele_a: Optional[str] = None
    allele_b: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class StrandResult:
    code: str

    @property
    def is_error(self) -> bool:
        return self.code.startswith(ERROR_PREFIX)

    def render(self, short_name: bool = False) -> str:
        """Output representation; ``TOP``/``BOT`` collapse to ``T``/``B`` when short."""
        if short_name and not self.is_error:
            if len(self.code) >= 2 and self.code[-2] == "O":
                return self.code[:-2]
        return self.code


@dataclass(frozen=True)
class AnnotateOptions:
    """All knobs of an ``annotate`` run, validated once before reading data."""

    ref: str
    delim: str = "\t"
    header: bool = True
    chrom: ColumnRef = ColumnRef(name="chrom")
    position: ColumnRef = ColumnRef(name="position")
    allele_a: Optional[ColumnRef] = ColumnRef(name="A")
    allele_b: Optional[ColumnRef] = ColumnRef(name="B")
    allele_ab: Optional[ColumnRef] = None
    insert_col: Optional[int] = None
    short_name: bool = False
    header_name: str = "TOPBOT"
    error_filter: bool = False
    comment: str = "#"
    skip: int = 0
    chrom_prefix: str = ""

    def roles(self) -> dict[str, Optional[ColumnRef]]:
        return {
            "chrom": self.chrom,
            "position": self.position,
            "A": self.allele_a,
            "B": self.allele_b,
            "AB": self.allele_ab,
        }
