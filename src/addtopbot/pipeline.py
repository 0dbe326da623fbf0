from __future__ import annotations

import enum
import logging
from typing import Iterable, Optional, TextIO

from tqdm import tqdm

from .alleles import extract_alleles
from .columns import build_column_plan, splice_field
from .ledger import ErrorLedger
from .models import AnnotateOptions, ColumnPlan
from .strand import StrandResolutionClient

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    AWAITING_HEADER = "awaiting_header"
    STREAMING = "streaming"
    DONE = "done"


class RecordPipeline:
    """Line-at-a-time TOPBOT annotation of a delimited table.

    ``process_line`` takes one raw input line and returns the output lines it
    produces (zero or one, plus the header on the first line in header mode).
    ``run`` drives a whole stream and closes the ledger on a clean end of input.
    """

    def __init__(
        self,
        opts: AnnotateOptions,
        client: StrandResolutionClient,
        ledger: Optional[ErrorLedger] = None,
    ) -> None:
        self.opts = opts
        self.client = client
        self.ledger = ledger if ledger is not None else ErrorLedger()
        self.plan: Optional[ColumnPlan] = None
        self.state = PipelineState.AWAITING_HEADER if opts.header else PipelineState.STREAMING
        self._skip = int(opts.skip)
        self.lines_read = 0
        self.lines_skipped = 0
        self.comments = 0
        self.records_written = 0

    def _is_comment(self, line: str) -> bool:
        return bool(self.opts.comment) and line.lstrip().startswith(self.opts.comment)

    def process_line(self, line: str) -> list[str]:
        if self.state is PipelineState.DONE:
            raise RuntimeError("Pipeline already finished.")
        self.lines_read += 1

        if self._skip > 0:
            self._skip -= 1
            self.lines_skipped += 1
            return []
        if self._is_comment(line):
            self.comments += 1
            return []

        fields = line.rstrip("\r\n").split(self.opts.delim)

        if self.state is PipelineState.AWAITING_HEADER:
            self.plan = build_column_plan(self.opts, fields)
            self.state = PipelineState.STREAMING
            return [self.opts.delim.join(splice_field(fields, self.plan.insert_at, self.opts.header_name))]

        if self.plan is None:
            # --noheader: the first data row fixes the column count
            self.plan = build_column_plan(self.opts, fields)

        out = self._annotate(fields, self.plan)
        return [] if out is None else [out]

    def _annotate(self, fields: list[str], plan: ColumnPlan) -> Optional[str]:
        call = extract_alleles(fields, plan)
        result = self.client.resolve(fields, plan, call)

        if result.is_error:
            self.ledger.record(result.code)
            if self.opts.error_filter:
                return None
        else:
            self.ledger.record_success()

        self.records_written += 1
        value = result.render(self.opts.short_name)
        return self.opts.delim.join(splice_field(fields, plan.insert_at, value))

    def finish(self) -> ErrorLedger:
        self.state = PipelineState.DONE
        self.ledger.close()
        logger.info(
            "Read %d lines (%d skipped, %d comments); wrote %d records.",
            self.lines_read,
            self.lines_skipped,
            self.comments,
            self.records_written,
        )
        return self.ledger

    def run(self, lines: Iterable[str], out: TextIO, *, progress: bool = False) -> ErrorLedger:
        """Annotate every line of ``lines`` into ``out`` and return the closed ledger."""
        it: Iterable[str] = lines
        if progress:
            it = tqdm(it, unit="line", desc="Annotating")

        for line in it:
            for out_line in self.process_line(line):
                out.write(out_line + "\n")

        return self.finish()
