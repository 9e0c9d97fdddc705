"""
Summary Store — SQLite aggregation of per-line analysis results

This is a PROJECTION of analyzer output, not source of truth: it can
always be rebuilt by re-running the analysis. It answers the questions
the renderer asks: totals, riskiest author groups and files, and
per-project / per-file / per-line statistics.

Single writer: only the parent process summarizes results, one file
at a time, as workers finish.
"""

import sqlite3
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

import orjson

from ..core.analyzer import FileAnalysis
from ..core.authors import AuthorSet


SAFE_AUTHOR_LABEL = "Git by a Bus Safe Author"
ROOT_DIR = "."


@dataclass
class Statistics:
    tot_knowledge: float = 0.0
    tot_risk: float = 0.0
    tot_orphaned: float = 0.0

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Statistics':
        return cls(row["knowledge"] or 0.0, row["risk"] or 0.0, row["orphaned"] or 0.0)

    def to_dict(self) -> Dict[str, float]:
        return {
            "tot_knowledge": self.tot_knowledge,
            "tot_risk": self.tot_risk,
            "tot_orphaned": self.tot_orphaned,
        }


@dataclass
class ProjectFile:
    file_id: int
    path: Path


@dataclass
class AuthorRisk:
    authors: List[str]
    stats: Statistics = field(default_factory=Statistics)

    def to_dict(self) -> Dict[str, Any]:
        return {"authors": self.authors, **self.stats.to_dict()}


def group_label(authors: AuthorSet) -> str:
    if authors.is_safe:
        return SAFE_AUTHOR_LABEL
    return authors.key


def relative_file_name(analysis: FileAnalysis) -> PurePosixPath:
    """File path relative to the project root, in posix form."""
    name = Path(analysis.file_name)
    if name.is_absolute():
        name = name.relative_to(Path(analysis.project_root))
    return PurePosixPath(name.as_posix())


_SUMS = """
    SUM(a.knowledge) AS knowledge,
    SUM(a.risk) AS risk,
    SUM(a.orphaned) AS orphaned
"""


class SummaryStore:
    """SQLite-backed summary of condensed file analyses."""

    def __init__(self, path: Path):
        self.path = Path(path)
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.path))
        self.conn.row_factory = sqlite3.Row
        self._configure_pragmas()
        self._init_schema()

    def _configure_pragmas(self):
        # Rebuildable projection: favour speed over durability
        self.conn.executescript("""
            PRAGMA journal_mode=WAL;
            PRAGMA synchronous=NORMAL;
            PRAGMA temp_store=MEMORY;
        """)

    def _init_schema(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS projects (
                project_id INTEGER PRIMARY KEY,
                project TEXT NOT NULL UNIQUE
            );

            CREATE TABLE IF NOT EXISTS dirs (
                dir_id INTEGER PRIMARY KEY,
                dir TEXT NOT NULL,
                parent_dir_id INTEGER NOT NULL,
                project_id INTEGER NOT NULL REFERENCES projects(project_id),
                UNIQUE (dir, parent_dir_id, project_id)
            );

            CREATE TABLE IF NOT EXISTS files (
                file_id INTEGER PRIMARY KEY,
                fname TEXT NOT NULL,
                dir_id INTEGER NOT NULL REFERENCES dirs(dir_id)
            );

            CREATE TABLE IF NOT EXISTS lines (
                line_id INTEGER PRIMARY KEY,
                line TEXT NOT NULL,
                file_id INTEGER NOT NULL REFERENCES files(file_id),
                line_num INTEGER NOT NULL,
                UNIQUE (file_id, line_num)
            );

            CREATE TABLE IF NOT EXISTS author_groups (
                group_id INTEGER PRIMARY KEY,
                authors TEXT NOT NULL UNIQUE,
                members TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS allocations (
                allocation_id INTEGER PRIMARY KEY,
                knowledge REAL NOT NULL,
                risk REAL NOT NULL,
                orphaned REAL NOT NULL,
                line_id INTEGER NOT NULL REFERENCES lines(line_id),
                group_id INTEGER NOT NULL REFERENCES author_groups(group_id)
            );

            CREATE INDEX IF NOT EXISTS idx_files_dir ON files(dir_id);
            CREATE INDEX IF NOT EXISTS idx_lines_file ON lines(file_id);
            CREATE INDEX IF NOT EXISTS idx_alloc_line ON allocations(line_id);
        """)
        self.conn.commit()

    def close(self):
        self.conn.close()

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def summarize(self, analysis: FileAnalysis) -> int:
        """Record one file's analysis; returns its file id."""
        fname = relative_file_name(analysis)

        with self.conn:
            project_id = self._find_or_create_project(str(analysis.project_root))

            dir_id = self._find_or_create_dir(ROOT_DIR, project_id, 0)
            for part in fname.parent.parts:
                dir_id = self._find_or_create_dir(part, project_id, dir_id)

            file_id = self.conn.execute(
                "INSERT INTO files (fname, dir_id) VALUES (?, ?)",
                (fname.name, dir_id)
            ).lastrowid

            for index, (text, condensations) in enumerate(analysis.lines):
                line_id = self.conn.execute(
                    "INSERT INTO lines (line, file_id, line_num) VALUES (?, ?, ?)",
                    (text, file_id, index + 1)
                ).lastrowid
                for c in condensations:
                    group_id = self._find_or_create_group(c.authors)
                    self.conn.execute(
                        """INSERT INTO allocations (knowledge, risk, orphaned, line_id, group_id)
                           VALUES (?, ?, ?, ?, ?)""",
                        (c.knowledge, c.risk, c.orphaned, line_id, group_id)
                    )

        return file_id

    def _find_or_create_project(self, project: str) -> int:
        self.conn.execute("INSERT OR IGNORE INTO projects (project) VALUES (?)", (project,))
        return self.conn.execute(
            "SELECT project_id FROM projects WHERE project = ?", (project,)
        ).fetchone()[0]

    def _find_or_create_dir(self, name: str, project_id: int, parent_dir_id: int) -> int:
        self.conn.execute(
            "INSERT OR IGNORE INTO dirs (dir, parent_dir_id, project_id) VALUES (?, ?, ?)",
            (name, parent_dir_id, project_id)
        )
        return self.conn.execute(
            "SELECT dir_id FROM dirs WHERE dir = ? AND parent_dir_id = ? AND project_id = ?",
            (name, parent_dir_id, project_id)
        ).fetchone()[0]

    def _find_or_create_group(self, authors: AuthorSet) -> int:
        label = group_label(authors)
        members = [] if authors.is_safe else list(authors.members)
        self.conn.execute(
            "INSERT OR IGNORE INTO author_groups (authors, members) VALUES (?, ?)",
            (label, orjson.dumps(members).decode())
        )
        return self.conn.execute(
            "SELECT group_id FROM author_groups WHERE authors = ?", (label,)
        ).fetchone()[0]

    # -------------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------------

    def _total(self, column: str) -> float:
        row = self.conn.execute(f"SELECT COALESCE(SUM({column}), 0.0) FROM allocations").fetchone()
        return row[0]

    def total_knowledge(self) -> float:
        return self._total("knowledge")

    def total_risk(self) -> float:
        return self._total("risk")

    def total_orphaned(self) -> float:
        return self._total("orphaned")

    def count_files(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM files").fetchone()[0]

    def author_groups_with_risk(self, top: Optional[int] = None) -> List[Tuple[str, float]]:
        """Author groups by descending total risk."""
        query = """
            SELECT g.authors AS authors, COALESCE(SUM(a.risk), 0.0) AS risk
            FROM allocations a JOIN author_groups g ON a.group_id = g.group_id
            GROUP BY g.group_id
            ORDER BY risk DESC, g.authors
        """
        params: tuple = ()
        if top is not None:
            query += " LIMIT ?"
            params = (top,)
        return [(row["authors"], row["risk"]) for row in self.conn.execute(query, params)]

    def file_ids_with_risk(self, top: Optional[int] = None) -> List[Tuple[int, float]]:
        """Files by descending total risk."""
        query = """
            SELECT f.file_id AS file_id, COALESCE(SUM(a.risk), 0.0) AS risk
            FROM files f
            LEFT JOIN lines l ON l.file_id = f.file_id
            LEFT JOIN allocations a ON a.line_id = l.line_id
            GROUP BY f.file_id
            ORDER BY risk DESC, f.file_id
        """
        params: tuple = ()
        if top is not None:
            query += " LIMIT ?"
            params = (top,)
        return [(row["file_id"], row["risk"]) for row in self.conn.execute(query, params)]

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def _dir_parts(self, dir_id: int) -> List[str]:
        parts: List[str] = []
        while dir_id != 0:
            row = self.conn.execute(
                "SELECT dir, parent_dir_id FROM dirs WHERE dir_id = ?", (dir_id,)
            ).fetchone()
            if row is None:
                break
            parts.append(row["dir"])
            dir_id = row["parent_dir_id"]
        parts.reverse()
        return parts

    def file_path(self, file_id: int) -> Path:
        row = self.conn.execute(
            "SELECT fname, dir_id FROM files WHERE file_id = ?", (file_id,)
        ).fetchone()
        if row is None:
            raise KeyError(f"Unknown file id: {file_id}")
        return Path(*self._dir_parts(row["dir_id"]), row["fname"])

    def project_files(self, project: str) -> List[ProjectFile]:
        rows = self.conn.execute("""
            SELECT f.file_id AS file_id
            FROM files f
            JOIN dirs d ON f.dir_id = d.dir_id
            JOIN projects p ON d.project_id = p.project_id
            WHERE p.project = ?
            ORDER BY f.file_id
        """, (project,)).fetchall()
        return [ProjectFile(row["file_id"], self.file_path(row["file_id"])) for row in rows]

    def file_lines(self, file_id: int) -> List[str]:
        rows = self.conn.execute(
            "SELECT line FROM lines WHERE file_id = ? ORDER BY line_num", (file_id,)
        )
        return [row["line"] for row in rows]

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    def _author_risks(self, where: str, params: tuple) -> List[AuthorRisk]:
        rows = self.conn.execute(f"""
            SELECT g.members AS members, {_SUMS}
            FROM allocations a
            JOIN author_groups g ON a.group_id = g.group_id
            JOIN lines l ON a.line_id = l.line_id
            JOIN files f ON l.file_id = f.file_id
            JOIN dirs d ON f.dir_id = d.dir_id
            WHERE {where}
            GROUP BY g.group_id
            ORDER BY g.authors
        """, params)
        return [
            AuthorRisk(orjson.loads(row["members"]), Statistics.from_row(row))
            for row in rows
        ]

    def _stats(self, where: str, params: tuple) -> Statistics:
        row = self.conn.execute(f"""
            SELECT {_SUMS}
            FROM allocations a
            JOIN lines l ON a.line_id = l.line_id
            JOIN files f ON l.file_id = f.file_id
            JOIN dirs d ON f.dir_id = d.dir_id
            WHERE {where}
        """, params).fetchone()
        return Statistics.from_row(row)

    def file_summary(self, file_id: int) -> Dict[str, Any]:
        """Per-file stats, author-group risks and per-line breakdown."""
        row = self.conn.execute(
            "SELECT fname FROM files WHERE file_id = ?", (file_id,)
        ).fetchone()
        if row is None:
            raise KeyError(f"Unknown file id: {file_id}")

        line_ids = [
            r["line_id"] for r in self.conn.execute(
                "SELECT line_id FROM lines WHERE file_id = ? ORDER BY line_num", (file_id,)
            )
        ]

        return {
            "name": row["fname"],
            "stats": self._stats("f.file_id = ?", (file_id,)).to_dict(),
            "author_risks": [
                ar.to_dict() for ar in self._author_risks("f.file_id = ?", (file_id,))
            ],
            "lines": [
                {
                    "stats": self._stats("l.line_id = ?", (line_id,)).to_dict(),
                    "author_risks": [
                        ar.to_dict() for ar in self._author_risks("l.line_id = ?", (line_id,))
                    ],
                }
                for line_id in line_ids
            ],
        }

    def project_summary(self, project: str) -> Dict[str, Any]:
        """Directory tree of file stats plus project-wide totals."""
        row = self.conn.execute(
            "SELECT project_id FROM projects WHERE project = ?", (project,)
        ).fetchone()
        if row is None:
            raise KeyError(f"Unknown project: {project}")
        project_id = row["project_id"]

        root_id = self.conn.execute(
            "SELECT dir_id FROM dirs WHERE parent_dir_id = 0 AND project_id = ?", (project_id,)
        ).fetchone()["dir_id"]

        return {
            "name": project,
            "root": self._dir_node(root_id),
            "stats": self._stats("d.project_id = ?", (project_id,)).to_dict(),
            "author_risks": [
                ar.to_dict() for ar in self._author_risks("d.project_id = ?", (project_id,))
            ],
        }

    def _dir_node(self, dir_id: int) -> Dict[str, Any]:
        name = self.conn.execute(
            "SELECT dir FROM dirs WHERE dir_id = ?", (dir_id,)
        ).fetchone()["dir"]

        files = [
            {
                "file_id": r["file_id"],
                "name": r["fname"],
                "stats": self._stats("f.file_id = ?", (r["file_id"],)).to_dict(),
                "author_risks": [
                    ar.to_dict() for ar in self._author_risks("f.file_id = ?", (r["file_id"],))
                ],
            }
            for r in self.conn.execute(
                "SELECT file_id, fname FROM files WHERE dir_id = ? ORDER BY fname", (dir_id,)
            ).fetchall()
        ]

        dirs = [
            self._dir_node(r["dir_id"])
            for r in self.conn.execute(
                "SELECT dir_id FROM dirs WHERE parent_dir_id = ? ORDER BY dir", (dir_id,)
            ).fetchall()
        ]

        return {"name": name, "files": files, "dirs": dirs}
