from __future__ import annotations

from typing import Dict, List


class ErrorLedger:
    """Per-run tally of successful designations and of each ERROR_* code.

    The summary is a post-pass: it can only be rendered once the ledger has been
    closed at the end of a fully consumed input stream.
    """

    def __init__(self) -> None:
        self.successes = 0
        self.errors: Dict[str, int] = {}
        self.closed = False

    def record(self, code: str) -> None:
        self.errors[code] = self.errors.get(code, 0) + 1

    def record_success(self) -> None:
        self.successes += 1

    def close(self) -> None:
        self.closed = True

    @property
    def error_total(self) -> int:
        return sum(self.errors.values())

    @property
    def total(self) -> int:
        return self.successes + self.error_total

    def sorted_errors(self) -> List[tuple[str, int]]:
        return sorted(self.errors.items())

    def summarize(self) -> str:
        if not self.closed:
            raise RuntimeError("Summary requested before the input stream was fully consumed.")
        lines = [f"Successful TOPBOT: {self.successes}", "Error summary:"]
        items = self.sorted_errors()
        if items:
            width = max(len(k) for k, _ in items)
            for code, count in items:
                lines.append(f"    {code:<{width}s}: {count}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, object]:
        return {
            "successes": self.successes,
            "errors": dict(self.sorted_errors()),
            "error_total": self.error_total,
            "records_total": self.total,
        }
