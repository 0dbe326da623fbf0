"""Illumina TOP/BOT strand designation against an indexed reference FASTA.

Rules
-----
- Unambiguous SNPs: if one allele is A and the other C or G, the SNP is TOP.
  If one allele is T and the other C or G, it is BOT.
- Ambiguous SNPs ([A/T] or [C/G]): "sequence walking". Compare the base n
  positions 5' of the SNP with the base n positions 3' of it, for n = 1, 2, ...
  The first pair where one base is A/T and the other is C/G decides the result:
  TOP if the A/T base is on the 5' side, BOT if it is on the 3' side.

Ambiguous SNPs are walked on the reference plus strand. For unambiguous SNPs
the designation does not depend on the flanking sequence.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pysam

logger = logging.getLogger(__name__)

TOP = "TOP"
BOT = "BOT"

ERROR_SAME_ALLELE = "ERROR_same_allele"
ERROR_CHROM_NOT_IN_REF = "ERROR_chrom_not_in_ref"
ERROR_POSITION_OUT_OF_RANGE = "ERROR_position_out_of_range"
ERROR_REF_MISMATCH = "ERROR_ref_mismatch"
ERROR_NO_UNAMBIGUOUS_FLANK = "ERROR_no_unambiguous_flank"

_WEAK = frozenset("AT")
_STRONG = frozenset("CG")
_COMPLEMENT = str.maketrans("ACGTN", "TGCAN")

DEFAULT_FLANK = 500


def complement(base: str) -> str:
    return base.translate(_COMPLEMENT)


def is_ambiguous(allele_a: str, allele_b: str) -> bool:
    pair = {allele_a, allele_b}
    return pair == {"A", "T"} or pair == {"C", "G"}


def designate_topbot(allele_a: str, allele_b: str, five_prime: str, three_prime: str) -> str:
    """Return TOP, BOT or an ERROR code for a biallelic SNP.

    Parameters
    ----------
    allele_a, allele_b:
        Uppercase single bases.
    five_prime:
        Sequence immediately 5' of the SNP, in 5'->3' order (last char is adjacent).
    three_prime:
        Sequence immediately 3' of the SNP, in 5'->3' order (first char is adjacent).
    """
    if allele_a == allele_b:
        return ERROR_SAME_ALLELE

    pair = {allele_a, allele_b}
    if not is_ambiguous(allele_a, allele_b):
        if "A" in pair:
            return TOP
        return BOT

    five = five_prime.upper()
    three = three_prime.upper()
    for n in range(1, min(len(five), len(three)) + 1):
        b5 = five[-n]
        b3 = three[n - 1]
        if b5 in _WEAK and b3 in _STRONG:
            return TOP
        if b5 in _STRONG and b3 in _WEAK:
            return BOT
    return ERROR_NO_UNAMBIGUOUS_FLANK


class FastaTopBotOracle:
    """StrandOracle backed by ``pysam.FastaFile``.

    The FASTA must already carry a ``.fai`` (see ``validation.check_fasta_index``).
    """

    def __init__(self, fasta_path: str | Path, *, flank: int = DEFAULT_FLANK) -> None:
        self.fasta_path = str(fasta_path)
        self.flank = int(flank)
        self._fasta: Optional[pysam.FastaFile] = pysam.FastaFile(self.fasta_path)
        self._lengths = dict(zip(self._fasta.references, self._fasta.lengths))
        logger.info("Opened reference %s (%d contigs)", self.fasta_path, len(self._lengths))

    def __enter__(self) -> "FastaTopBotOracle":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._fasta is not None:
            self._fasta.close()
            self._fasta = None

    def resolve_strand(self, chrom: str, position: int, allele_a: str, allele_b: str) -> str:
        if self._fasta is None:
            raise RuntimeError("Reference FASTA is closed.")
        if chrom not in self._lengths:
            return ERROR_CHROM_NOT_IN_REF
        length = self._lengths[chrom]
        if position < 1 or position > length:
            return ERROR_POSITION_OUT_OF_RANGE

        pos0 = position - 1
        start = max(0, pos0 - self.flank)
        end = min(length, pos0 + 1 + self.flank)
        seq = self._fasta.fetch(chrom, start, end).upper()

        ref_base = seq[pos0 - start]
        alleles = {allele_a, allele_b}
        if ref_base not in alleles and complement(ref_base) not in alleles:
            return ERROR_REF_MISMATCH

        return designate_topbot(
            allele_a,
            allele_b,
            five_prime=seq[: pos0 - start],
            three_prime=seq[pos0 - start + 1 :],
        )
