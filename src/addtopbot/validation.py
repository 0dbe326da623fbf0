from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from .models import AnnotateOptions, ColumnRef

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised for invalid run configuration; always fatal and raised before data is read."""


def check_fasta_index(ref_path: str | Path) -> None:
    """Ensure a reference FASTA is readable and faidx-indexed; raise ConfigError with fix instructions."""
    ref = Path(ref_path)
    if not ref.exists():
        raise ConfigError(f"Reference file \"{ref}\" does not exist.")
    if not os.access(ref, os.R_OK):
        raise ConfigError(f"Reference file \"{ref}\" is not readable.")
    fai = ref.with_suffix(ref.suffix + ".fai")
    if not fai.exists():
        raise ConfigError(
            "Reference FASTA is not indexed. Run: samtools faidx " + str(ref)
        )
    if ref.suffix == ".gz":
        gzi = ref.with_suffix(ref.suffix + ".gzi")
        if not gzi.exists():
            raise ConfigError(
                "Compressed reference must be bgzip-compressed with a .gzi index. "
                "Run: bgzip -d " + str(ref) + "; bgzip -i " + str(ref.with_suffix(""))
                + "; samtools faidx " + str(ref)
            )


def resolve_allele_columns(
    a: Optional[str],
    b: Optional[str],
    ab: Optional[str],
) -> Tuple[Optional[ColumnRef], Optional[ColumnRef], Optional[ColumnRef]]:
    """Apply the --A/--B/--AB rules and return (A, B, AB) column refs."""
    if ab is not None and (a is not None or b is not None):
        raise ConfigError("Cannot define --AB and at least one of --A or --B.")
    if (a is None) != (b is None):
        raise ConfigError("Must define both --A and --B together.")
    if ab is not None:
        return None, None, ColumnRef.parse(ab)
    if a is None and b is None:
        a, b = "A", "B"
    return ColumnRef.parse(a), ColumnRef.parse(b), None


def parse_delimiter(value: str) -> str:
    """Translate the common shell-escaped delimiters (``\\t``, ``\\s``, ``\\,``)."""
    escapes = {"\\t": "\t", "\\s": " ", "\\,": ","}
    return escapes.get(value, value)


def validate_options(opts: AnnotateOptions) -> None:
    """Check an AnnotateOptions instance; raise ConfigError on the first problem."""
    if len(opts.delim) == 0:
        raise ConfigError("Delimiter --delim must be at least one character long.")
    if opts.skip < 0:
        raise ConfigError("--skip is not an integer of 0 or greater.")
    if opts.insert_col is not None and opts.insert_col < 0:
        raise ConfigError("--insertcol is not an integer of 0 or greater.")

    has_split = opts.allele_a is not None or opts.allele_b is not None
    if opts.allele_ab is not None and has_split:
        raise ConfigError("Cannot define --AB and at least one of --A or --B.")
    if opts.allele_ab is None and (opts.allele_a is None or opts.allele_b is None):
        raise ConfigError("Must define both --A and --B together.")

    if not opts.header:
        named = [
            f"--{role} {ref}"
            for role, ref in opts.roles().items()
            if ref is not None and not ref.is_index
        ]
        if named:
            raise ConfigError(
                "Column options need to be integers with no header: " + ", ".join(named) + "."
            )

    logger.debug("Options validated: %s", opts)
