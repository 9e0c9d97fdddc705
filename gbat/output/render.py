"""
SummaryRenderer — Write the summary store out as JSON and HTML files

Layout under the output directory:
    files/summary.json      project tree, totals, author-group risks
    files/<file_id>.json    per-file stats and per-line breakdown
    files/<file_id>.html    final file source, syntax highlighted
    files/pygments.css      stylesheet shared by the highlighted sources
"""

import logging
from pathlib import Path
from typing import Any

import orjson
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, guess_lexer_for_filename
from pygments.util import ClassNotFound

from ..services.summary import SummaryStore


logger = logging.getLogger(__name__)

NUM_RISKIEST_AUTHORS = 10
NUM_RISKIEST_FILES = 10

STYLESHEET = "pygments.css"
# Highlighted lines are anchored as gbab-<n>
LINE_ANCHOR_PREFIX = "gbab"


def dump_json(data: Any, compact: bool = False) -> bytes:
    options = orjson.OPT_SORT_KEYS
    if not compact:
        options |= orjson.OPT_INDENT_2
    return orjson.dumps(data, option=options)


class SummaryRenderer:
    """Render a project's summary from the store into an output directory."""

    def __init__(self, store: SummaryStore, output_dir: Path, compact: bool = False):
        self.store = store
        self.output_dir = Path(output_dir)
        self.files_dir = self.output_dir / "files"
        self.compact = compact

    def render_all(self, project: str) -> Path:
        """Render everything; returns the path of summary.json."""
        self.files_dir.mkdir(parents=True, exist_ok=True)
        summary_path = self.render_summary(project)
        self.render_files(project)
        self.render_src(project)
        return summary_path

    def render_summary(self, project: str) -> Path:
        summary = self.store.project_summary(project)
        summary["riskiest_authors"] = [
            {"authors": authors, "risk": risk}
            for authors, risk in self.store.author_groups_with_risk(NUM_RISKIEST_AUTHORS)
        ]
        summary["riskiest_files"] = [
            {"file_id": file_id, "path": self.store.file_path(file_id).as_posix(), "risk": risk}
            for file_id, risk in self.store.file_ids_with_risk(NUM_RISKIEST_FILES)
        ]

        path = self.files_dir / "summary.json"
        path.write_bytes(dump_json(summary, self.compact))
        logger.info("Wrote %s", path)
        return path

    def render_files(self, project: str) -> None:
        for project_file in self.store.project_files(project):
            file_id = project_file.file_id
            summary = self.store.file_summary(file_id)
            summary["path"] = project_file.path.as_posix()
            (self.files_dir / f"{file_id}.json").write_bytes(dump_json(summary, self.compact))

    def render_src(self, project: str) -> None:
        """Highlight every file's final text into <file_id>.html."""
        formatter = HtmlFormatter(linenos=True, lineanchors=LINE_ANCHOR_PREFIX)
        (self.files_dir / STYLESHEET).write_text(formatter.get_style_defs(), encoding="utf-8")

        for project_file in self.store.project_files(project):
            body = "\n".join(self.store.file_lines(project_file.file_id))
            try:
                lexer = guess_lexer_for_filename(project_file.path.name, body)
            except ClassNotFound:
                lexer = TextLexer()

            html = highlight(body, lexer, formatter)
            (self.files_dir / f"{project_file.file_id}.html").write_text(
                f'<link rel=stylesheet type="text/css" href="{STYLESHEET}">' + html,
                encoding="utf-8",
            )
