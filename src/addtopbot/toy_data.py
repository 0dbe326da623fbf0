from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .utils import ensure_outdir, write_json

# 1-based positions on chr1 of the toy reference, with the SNP alleles to report.
# The reference is built so that each row exercises one designation path.
_TOY_SEQ = (
    "GGGCCCGGGC"  # 1-10
    "AACTGGATCC"  # 11-20
    "TTTAGCAGGA"  # 21-30
    "CCGTAAGCTT"  # 31-40
    "GCATGCATGC"  # 41-50
)

_TOY_ROWS: List[Tuple[str, int, str, str]] = [
    ("1", 12, "A", "G"),  # unambiguous -> TOP
    ("1", 14, "T", "C"),  # unambiguous -> BOT
    ("1", 17, "A", "T"),  # ambiguous, 5' G / 3' T -> BOT
    ("1", 24, "T", "A"),  # ambiguous, 5' T / 3' G -> TOP
    ("1", 33, "G", "C"),  # ambiguous, 5' C / 3' T -> BOT
    ("1", 12, "X", "G"),  # ERROR_not_AGCT
    ("2", 10, "A", "G"),  # ERROR_chrom_not_in_ref
    ("1", 999, "A", "G"),  # ERROR_position_out_of_range
]


def _write_fasta(path: Path, contig: str, seq: str) -> None:
    lines = [f">{contig}"]
    for i in range(0, len(seq), 60):
        lines.append(seq[i : i + 60])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny reference and coordinates table suitable for quick demos/tests.

    The outputs include:
    - toy_ref.fa (+ .fai), a single contig named ``chr1``
    - coordinates.tsv with columns chrom/position/A/B (chromosomes without the
      ``chr`` prefix, so run with ``--chromprefix chr``)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    ref_fa = outdir_p / "toy_ref.fa"
    _write_fasta(ref_fa, "chr1", _TOY_SEQ)
    pysam.faidx(str(ref_fa))

    coords = outdir_p / "coordinates.tsv"
    lines = ["# toy coordinates for addtopbot", "chrom\tposition\tA\tB"]
    for chrom, pos, a, b in _TOY_ROWS:
        lines.append(f"{chrom}\t{pos}\t{a}\t{b}")
    coords.write_text("\n".join(lines) + "\n", encoding="utf-8")

    summary = {
        "ref_fa": str(ref_fa),
        "coordinates": str(coords),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
