"""
Report renderer: generate CSV/Markdown/HTML/JSON/text leaderboards from ranked contributors.
HTML and Markdown use the Jinja2 templates under report/templates.
"""

import os
import io
import csv
import json
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from normalize.models import AggregatedContributor

CSV_HEADER = ['Github Username', 'Total Contributions', 'Profile', 'Avatar', 'Most Contribution To', 'Contributed To']

FORMATS = ('csv', 'md', 'html', 'json', 'text')

# file extension per output format
EXTENSIONS = {'csv': 'csv', 'md': 'md', 'html': 'html', 'json': 'json', 'text': 'txt'}

_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        autoescape=select_autoescape(['html', 'xml', 'html.j2']),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def csv_row(contributor: AggregatedContributor) -> list:
    """Return the CSV row for one ranked contributor."""
    return [
        contributor.handle,
        contributor.total_contributions,
        contributor.profile_url,
        contributor.avatar_url,
        contributor.top_repository or '',
        contributor.all_repositories or '',
    ]


def render_csv(contributors: List[AggregatedContributor], header: bool = True) -> str:
    """Render the leaderboard as CSV; header=False gives rows only (used when appending)."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    if header:
        writer.writerow(CSV_HEADER)
    for c in contributors:
        writer.writerow(csv_row(c))
    return output.getvalue()


def render_text(contributors: List[AggregatedContributor]) -> str:
    """One line per contributor: rank, handle, total, top repository."""
    lines = []
    for rank, c in enumerate(contributors, start=1):
        lines.append(f"{rank}. {c.handle} - {c.total_contributions} contributions (most to {c.top_repository})")
    return "\n".join(lines)


def render_json(contributors: List[AggregatedContributor], owner: Optional[str] = None, generated_at: Optional[str] = None) -> str:
    """Export the ranked contributors, including their per-repository breakdown, as JSON."""
    doc = {
        'owner': owner,
        'generated_at': generated_at,
        'contributors': [dict(rank=rank, **c.to_dict()) for rank, c in enumerate(contributors, start=1)],
    }
    return json.dumps(doc, indent=2)


def render_markdown(contributors: List[AggregatedContributor], owner: Optional[str] = None, generated_at: Optional[str] = None) -> str:
    tmpl = _environment().get_template('leaderboard.md.j2')
    return tmpl.render(contributors=contributors, owner=owner, generated_at=generated_at)


def render_html(contributors: List[AggregatedContributor], owner: Optional[str] = None, generated_at: Optional[str] = None) -> str:
    tmpl = _environment().get_template('leaderboard.html.j2')
    return tmpl.render(contributors=contributors, owner=owner, generated_at=generated_at)


def render(
    contributors: List[AggregatedContributor],
    fmt: str = 'csv',
    owner: Optional[str] = None,
    generated_at: Optional[str] = None,
    header: bool = True,
) -> str:
    """Main render function. header only applies to CSV."""
    fmt_l = (fmt or 'csv').lower()
    if fmt_l == 'csv':
        return render_csv(contributors, header=header)
    if fmt_l in ('md', 'markdown'):
        return render_markdown(contributors, owner, generated_at)
    if fmt_l in ('html', 'htm'):
        return render_html(contributors, owner, generated_at)
    if fmt_l == 'json':
        return render_json(contributors, owner, generated_at)
    if fmt_l in ('text', 'txt'):
        return render_text(contributors)
    raise ValueError(f"Unknown output format '{fmt}'; expected one of {', '.join(FORMATS)}")
