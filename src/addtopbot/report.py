from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>addtopbot Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>addtopbot Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Inputs</h2>
<table>
  <tr><th>Reference</th><td><code>{{ ref }}</code></td></tr>
  <tr><th>Input</th><td>{% for p in inputs %}<code>{{ p }}</code>{% if not loop.last %}<br>{% endif %}{% endfor %}</td></tr>
  <tr><th>Output column</th><td><code>{{ header_name }}</code></td></tr>
  <tr><th>Error filter</th><td>{{ "on" if error_filter else "off" }}</td></tr>
</table>

<h2>Outcomes</h2>
<table>
  <tr><th>Records processed</th><td>{{ summary.records_total }}</td></tr>
  <tr><th>Successful TOPBOT</th><td>{{ summary.successes }}</td></tr>
  <tr><th>Errors</th><td>{{ summary.error_total }}</td></tr>
</table>

{% if summary.errors %}
<h3>Error codes</h3>
<table>
  <tr><th>Code</th><th>Count</th></tr>
  {% for code, count in summary.errors.items() %}
  <tr><td><code>{{ code }}</code></td><td>{{ count }}</td></tr>
  {% endfor %}
</table>
{% endif %}

{% if plot %}
<h2>Plot</h2>
<img src="{{ plot }}" alt="outcome counts">
{% endif %}

<h2>Interpretation notes</h2>
<ul>
  <li><code>ERROR_not_AGCT</code>: alleles could not be read as exactly two of A/C/G/T.</li>
  <li>[A/T] and [C/G] SNPs are designated by sequence walking on the reference plus strand.</li>
  <li>Reference base mismatches usually indicate a build or chromosome-prefix problem (see <code>--chromprefix</code>).</li>
</ul>

<hr>
<p class="small">addtopbot {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    out_path: str | Path,
    version: str,
    summary: Dict[str, Any],
    ref: str,
    inputs: List[str],
    header_name: str,
    error_filter: bool,
    plot: Optional[str] = None,
) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        summary=summary,
        ref=ref,
        inputs=inputs or ["<stdin>"],
        header_name=header_name,
        error_filter=error_filter,
        plot=plot,
    )

    out_path.write_text(html, encoding="utf-8")
    logger.info("Report written: %s", out_path)
    return out_path
