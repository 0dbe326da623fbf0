import io
from typing import Dict, List, Optional, Tuple

import pytest

from addtopbot.ledger import ErrorLedger
from addtopbot.models import AnnotateOptions, ColumnRef
from addtopbot.pipeline import PipelineState, RecordPipeline
from addtopbot.strand import StrandResolutionClient
from addtopbot.validation import ConfigError


class StubOracle:
    """Deterministic oracle: answers from a table keyed by (chrom, position), default TOP."""

    def __init__(self, answers: Optional[Dict[Tuple[str, int], str]] = None, default: str = "TOP") -> None:
        self.answers = answers or {}
        self.default = default
        self.calls: List[Tuple[str, int, str, str]] = []

    def resolve_strand(self, chrom: str, position: int, allele_a: str, allele_b: str) -> str:
        self.calls.append((chrom, position, allele_a, allele_b))
        return self.answers.get((chrom, position), self.default)


class BrokenOracle:
    def resolve_strand(self, chrom: str, position: int, allele_a: str, allele_b: str) -> str:
        raise OSError("reference went away")


def _run(text: str, oracle=None, **kw) -> Tuple[str, ErrorLedger, StubOracle]:
    oracle = oracle if oracle is not None else StubOracle()
    opts = AnnotateOptions(ref="ref.fa", **kw)
    client = StrandResolutionClient(oracle, chrom_prefix=opts.chrom_prefix)
    out = io.StringIO()
    ledger = RecordPipeline(opts, client).run(io.StringIO(text), out)
    return out.getvalue(), ledger, oracle


def test_basic_top_scenario():
    out, ledger, oracle = _run("chrom\tposition\tA\tB\n1\t100\tA\tG\n")
    assert out == "chrom\tposition\tA\tB\tTOPBOT\n1\t100\tA\tG\tTOP\n"
    assert ledger.successes == 1
    assert ledger.errors == {}
    assert ledger.summarize() == "Successful TOPBOT: 1\nError summary:\n"
    assert oracle.calls == [("1", 100, "A", "G")]


def test_bad_allele_is_annotated_with_error():
    out, ledger, oracle = _run("chrom\tposition\tA\tB\n1\t100\tX\tG\n")
    assert out.splitlines()[1] == "1\t100\tX\tG\tERROR_not_AGCT"
    assert ledger.errors == {"ERROR_not_AGCT": 1}
    assert ledger.successes == 0
    assert oracle.calls == []


def test_error_filter_drops_but_counts():
    text = "chrom\tposition\tA\tB\n1\t100\tX\tG\n1\t200\tC\tT\n"
    out, ledger, _ = _run(text, error_filter=True)
    assert out == "chrom\tposition\tA\tB\tTOPBOT\n1\t200\tC\tT\tTOP\n"
    assert ledger.errors == {"ERROR_not_AGCT": 1}
    assert ledger.total == 2


def test_combined_column_mode():
    text = "chrom\tposition\talleles\n1\t100\tAG\n1\t101\tAGT\n"
    out, ledger, oracle = _run(
        text,
        allele_a=None,
        allele_b=None,
        allele_ab=ColumnRef(name="alleles"),
    )
    rows = out.splitlines()
    assert rows[1] == "1\t100\tAG\tTOP"
    assert rows[2] == "1\t101\tAGT\tERROR_not_AGCT"
    # AGT never reaches the oracle
    assert oracle.calls == [("1", 100, "A", "G")]


def test_noheader_prepend():
    text = "1\t100\tA\tG\n2\t50\tT\tC\n"
    oracle = StubOracle(answers={("2", 50): "BOT"})
    out, ledger, _ = _run(
        text,
        oracle=oracle,
        header=False,
        chrom=ColumnRef(index=0),
        position=ColumnRef(index=1),
        allele_a=ColumnRef(index=2),
        allele_b=ColumnRef(index=3),
        insert_col=0,
    )
    assert out == "TOP\t1\t100\tA\tG\nBOT\t2\t50\tT\tC\n"
    assert ledger.successes == 2


def test_insert_column_in_the_middle_keeps_order():
    text = "chrom\tposition\tA\tB\tx\n1\t100\tA\tG\tfoo\n"
    out, _, _ = _run(text, insert_col=2)
    assert out.splitlines() == [
        "chrom\tposition\tTOPBOT\tA\tB\tx",
        "1\t100\tTOP\tA\tG\tfoo",
    ]


def test_skip_counts_comments_and_comment_lines_are_dropped():
    text = (
        "# first comment\n"
        "garbage line\n"
        "   # indented comment\n"
        "chrom\tposition\tA\tB\n"
        "# mid comment\n"
        "1\t100\tA\tG\n"
    )
    out, ledger, _ = _run(text, skip=2)
    assert out == "chrom\tposition\tA\tB\tTOPBOT\n1\t100\tA\tG\tTOP\n"
    assert ledger.total == 1


def test_custom_comment_marker_and_delimiter():
    text = "//meta\nchrom,position,A,B\n1,100,A,G\n#1,101,A,G\n"
    out, ledger, _ = _run(text, delim=",", comment="//")
    assert out.splitlines() == [
        "chrom,position,A,B,TOPBOT",
        "1,100,A,G,TOP",
        "#1,101,A,G,TOP",
    ]
    assert ledger.successes == 2


def test_short_name_and_oracle_errors():
    text = "chrom\tposition\tA\tB\n1\t1\tA\tG\n1\t2\tT\tC\n1\t3\tA\tT\n"
    oracle = StubOracle(answers={("1", 2): "BOT", ("1", 3): "ERROR_no_unambiguous_flank"})
    out, ledger, _ = _run(text, oracle=oracle, short_name=True, header_name="strand")
    assert out.splitlines() == [
        "chrom\tposition\tA\tB\tstrand",
        "1\t1\tA\tG\tT",
        "1\t2\tT\tC\tB",
        "1\t3\tA\tT\tERROR_no_unambiguous_flank",
    ]
    assert ledger.successes == 2
    assert ledger.errors == {"ERROR_no_unambiguous_flank": 1}


def test_chrom_prefix_is_passed_to_oracle():
    _, _, oracle = _run("chrom\tposition\tA\tB\n7\t100\tA\tG\n", chrom_prefix="chr")
    assert oracle.calls == [("chr7", 100, "A", "G")]


def test_bad_position_and_missing_field():
    text = "A\tB\tchrom\tposition\nA\tG\t1\tabc\nA\tG\t1\t\u00b2\nA\tG\t1\n"
    out, ledger, oracle = _run(text)
    rows = out.splitlines()
    assert rows[1].endswith("\tERROR_bad_position")
    assert rows[2].endswith("\tERROR_bad_position")
    assert rows[3] == "A\tG\t1\tERROR_missing_field"
    assert oracle.calls == []
    assert ledger.errors == {"ERROR_bad_position": 2, "ERROR_missing_field": 1}


def test_non_ascii_digit_position_does_not_stop_the_run():
    out, ledger, oracle = _run("chrom\tposition\tA\tB\n1\t\u00b2\tA\tG\n1\t100\tA\tG\n")
    assert out.splitlines()[1:] == ["1\t\u00b2\tA\tG\tERROR_bad_position", "1\t100\tA\tG\tTOP"]
    assert ledger.total == 2
    assert ledger.successes == 1
    assert oracle.calls == [("1", 100, "A", "G")]


def test_noheader_short_first_row_is_a_record_error():
    text = "1\t100\n\n1\t100\tA\tG\n"
    out, ledger, _ = _run(
        text,
        header=False,
        chrom=ColumnRef(index=0),
        position=ColumnRef(index=1),
        allele_a=ColumnRef(index=2),
        allele_b=ColumnRef(index=3),
        insert_col=0,
    )
    assert out == "ERROR_not_AGCT\t1\t100\nERROR_not_AGCT\t\nTOP\t1\t100\tA\tG\n"
    assert ledger.total == 3
    assert ledger.errors == {"ERROR_not_AGCT": 2}


def test_crlf_line_endings_are_stripped():
    out, _, _ = _run("chrom\tposition\tA\tB\r\n1\t100\tA\tG\r\n")
    assert out == "chrom\tposition\tA\tB\tTOPBOT\n1\t100\tA\tG\tTOP\n"


def test_record_counts_and_ledger_totals():
    rows = ["1\t%d\t%s\tG" % (i, "A" if i % 3 else "N") for i in range(1, 31)]
    text = "chrom\tposition\tA\tB\n" + "\n".join(rows) + "\n"
    n_errors = sum(1 for i in range(1, 31) if i % 3 == 0)

    out, ledger, _ = _run(text)
    assert len(out.splitlines()) - 1 == 30
    assert ledger.total == 30

    out, ledger, _ = _run(text, error_filter=True)
    assert len(out.splitlines()) - 1 == 30 - n_errors
    assert ledger.error_total == n_errors
    assert ledger.successes + ledger.error_total == 30


def test_unknown_column_name_fails_before_any_record():
    with pytest.raises(ConfigError, match="Column pos not found"):
        _run("chrom\tposition\tA\tB\n1\t100\tA\tG\n", position=ColumnRef(name="pos"))


def test_states_and_header_only_input():
    opts = AnnotateOptions(ref="ref.fa")
    pipeline = RecordPipeline(opts, StrandResolutionClient(StubOracle()))
    assert pipeline.state is PipelineState.AWAITING_HEADER
    assert pipeline.process_line("chrom\tposition\tA\tB\n") == ["chrom\tposition\tA\tB\tTOPBOT"]
    assert pipeline.state is PipelineState.STREAMING
    ledger = pipeline.finish()
    assert pipeline.state is PipelineState.DONE
    assert ledger.summarize() == "Successful TOPBOT: 0\nError summary:\n"
    with pytest.raises(RuntimeError):
        pipeline.process_line("1\t100\tA\tG\n")


def test_oracle_failure_is_fatal_and_leaves_no_summary():
    opts = AnnotateOptions(ref="ref.fa")
    ledger = ErrorLedger()
    pipeline = RecordPipeline(opts, StrandResolutionClient(BrokenOracle()), ledger=ledger)
    with pytest.raises(OSError):
        pipeline.run(io.StringIO("chrom\tposition\tA\tB\n1\t100\tA\tG\n"), io.StringIO())
    with pytest.raises(RuntimeError):
        ledger.summarize()
