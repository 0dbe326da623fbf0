"""addtopbot: add Illumina TOP/BOT strand designations to delimited SNP tables.

Public API is intentionally small; most users should use the CLI:

    addtopbot annotate --ref hg19.fa coordinates.txt

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
