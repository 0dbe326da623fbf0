from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from . import __version__
from .models import AnnotateOptions, ColumnRef
from .pipeline import RecordPipeline
from .plotting import plot_outcome_counts
from .report import render_report
from .strand import StrandResolutionClient
from .topbot import DEFAULT_FLANK, FastaTopBotOracle
from .toy_data import make_toy_data
from .utils import iter_input_lines, open_textmaybe_gzip, write_json
from .validation import (
    check_fasta_index,
    parse_delimiter,
    resolve_allele_columns,
    validate_options,
)


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)


def _handle_error(err: Exception) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="addtopbot",
        description=(
            "addtopbot: add an Illumina TOP/BOT strand designation column to a delimited "
            "SNP table, using an indexed reference FASTA. SNPs that cannot be designated "
            "get an ERROR_* code instead."
        ),
    )
    p.add_argument("--version", action="version", version=f"addtopbot {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common table layouts.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny indexed reference and coordinates table for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # annotate
    # -----------------
    a = sub.add_parser(
        "annotate",
        help="Add the TOPBOT column to a delimited file (or stdin).",
    )
    a.add_argument(
        "files",
        nargs="*",
        help="Input table(s); .gz is supported. Reads stdin when omitted or '-'.",
    )
    a.add_argument(
        "--ref",
        required=True,
        help="Reference FASTA indexed with samtools faidx (.fai required).",
    )
    a.add_argument(
        "--delim",
        default="\t",
        type=parse_delimiter,
        help="Field delimiter (default: tab). '\\t', '\\s' and '\\,' are understood.",
    )
    a.add_argument(
        "--noheader",
        action="store_true",
        help="The file has no header line; all column options must be 0-based integers.",
    )

    cols = a.add_argument_group(
        "columns",
        "A number refers to a 0-based column index; anything else is a header name. "
        "Use --A and --B for alleles in two columns, or --AB for a single column "
        "holding exactly two of A/C/G/T.",
    )
    cols.add_argument("--chrom", default="chrom", help="Chromosome column (default: chrom).")
    cols.add_argument("--position", default="position", help="Position column (default: position).")
    cols.add_argument("--A", dest="allele_a", default=None, help="First allele column (default: A).")
    cols.add_argument("--B", dest="allele_b", default=None, help="Second allele column (default: B).")
    cols.add_argument("--AB", dest="allele_ab", default=None, help="Combined allele column.")

    out = a.add_argument_group("output")
    out.add_argument(
        "--insertcol",
        type=int,
        default=None,
        help="Insert the TOPBOT column after this many columns; 0 makes it the first column "
        "(default: after the last column).",
    )
    out.add_argument("--shortname", action="store_true", help="Use T and B instead of TOP and BOT.")
    out.add_argument("--headername", default="TOPBOT", help="Header of the new column (default: TOPBOT).")
    out.add_argument(
        "--errorfilter",
        action="store_true",
        help="Drop SNPs with an ERROR code instead of writing them.",
    )
    out.add_argument("-o", "--output", default=None, help="Write the table here instead of stdout.")
    out.add_argument("--summary-json", default=None, help="Write the run summary as JSON.")
    out.add_argument(
        "--report",
        default=None,
        help="Write an HTML run report (plus an outcome plot PNG next to it).",
    )

    inp = a.add_argument_group("input")
    inp.add_argument(
        "--comment",
        default="#",
        help="Skip lines whose first non-whitespace text is this string (default: '#').",
    )
    inp.add_argument(
        "--skip",
        type=int,
        default=0,
        help="Skip this many lines from the start, including comment lines (default: 0).",
    )
    inp.add_argument(
        "--chromprefix",
        default="",
        help="Prepend this to chromosome names when looking them up in the reference, e.g. 'chr'.",
    )
    inp.add_argument(
        "--flank",
        type=int,
        default=DEFAULT_FLANK,
        help=f"Bases fetched on each side for [A/T] and [C/G] sequence walking (default: {DEFAULT_FLANK}).",
    )

    a.add_argument("--progress", action="store_true", help="Show a progress bar on stderr.")
    a.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


def options_from_args(args: argparse.Namespace) -> AnnotateOptions:
    allele_a, allele_b, allele_ab = resolve_allele_columns(args.allele_a, args.allele_b, args.allele_ab)
    opts = AnnotateOptions(
        ref=str(args.ref),
        delim=args.delim,
        header=not bool(args.noheader),
        chrom=ColumnRef.parse(args.chrom),
        position=ColumnRef.parse(args.position),
        allele_a=allele_a,
        allele_b=allele_b,
        allele_ab=allele_ab,
        insert_col=args.insertcol,
        short_name=bool(args.shortname),
        header_name=str(args.headername),
        error_filter=bool(args.errorfilter),
        comment=str(args.comment),
        skip=int(args.skip),
        chrom_prefix=str(args.chromprefix),
    )
    validate_options(opts)
    return opts


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "addtopbot quickstart (copy/paste):",
        "",
        "1) Tab-separated file with header chrom/position/A/B:",
        "   addtopbot annotate --ref hg19.fa coordinates.txt > annotated.txt",
        "",
        "2) Comma-separated, combined allele column named 'alleles', UCSC contig names:",
        "   addtopbot annotate --ref hg19.fa --delim , --AB alleles --chromprefix chr snps.csv",
        "",
        "3) No header, TOPBOT as first column, only designated SNPs:",
        "   cat snps.txt | addtopbot annotate --ref hg19.fa --noheader \\",
        "     --chrom 0 --position 1 --A 2 --B 3 --insertcol 0 --errorfilter",
        "",
        "The run summary (successes and per-error counts) is printed on stderr.",
        "Try it on toy data: addtopbot make-toy-data --outdir toy/",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def _write_run_outputs(args: argparse.Namespace, opts: AnnotateOptions, summary: dict) -> None:
    if args.summary_json:
        write_json(args.summary_json, summary)

    if args.report:
        report_path = Path(args.report)
        png = report_path.with_name(report_path.stem + "_outcomes.png")
        plot_outcome_counts(
            successes=int(summary["successes"]),
            errors=dict(summary["errors"]),
            out_png=png,
        )
        render_report(
            out_path=report_path,
            version=__version__,
            summary=summary,
            ref=opts.ref,
            inputs=list(args.files),
            header_name=opts.header_name,
            error_filter=opts.error_filter,
            plot=png.name,
        )


def cmd_annotate(args: argparse.Namespace) -> int:
    _setup_logging(args.verbose)
    logger = logging.getLogger("addtopbot")
    logger.info("addtopbot %s", __version__)

    try:
        opts = options_from_args(args)
        check_fasta_index(opts.ref)

        out_fh: TextIO
        if args.output:
            out_fh = open_textmaybe_gzip(args.output, "wt")
        else:
            out_fh = sys.stdout

        try:
            with FastaTopBotOracle(opts.ref, flank=int(args.flank)) as oracle:
                client = StrandResolutionClient(oracle, chrom_prefix=opts.chrom_prefix)
                pipeline = RecordPipeline(opts, client)
                ledger = pipeline.run(
                    iter_input_lines(args.files),
                    out_fh,
                    progress=bool(args.progress),
                )
        finally:
            if out_fh is sys.stdout:
                out_fh.flush()
            else:
                out_fh.close()

        sys.stderr.write(ledger.summarize())
        _write_run_outputs(args, opts, ledger.to_dict())
        return 0
    except Exception as e:
        return _handle_error(e)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "annotate":
        return cmd_annotate(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
