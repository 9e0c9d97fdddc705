"""
Pipeline — Discover files, replay each in the pool, summarize, render

Single writer: workers only return FileAnalysis objects; the calling
process summarizes them into the store as results arrive.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .config import Config
from .core.analyzer import FileAnalysis, analyze_history
from .core.risk import RiskOracle
from .errors import GbatError
from .orchestrator import TaskOrchestrator, TaskResult, file_task
from .output.render import SummaryRenderer
from .services.discovery import FileFilter
from .services.git import GitRepository, find_git
from .services.summary import SummaryStore


logger = logging.getLogger(__name__)

SUMMARY_DB = "summary.db"
FILES_DIR = "files"


@dataclass(frozen=True)
class AnalysisJob:
    """Everything one worker needs to analyze one file (picklable)."""
    repo: GitRepository
    repo_root: Path
    file_name: str
    risk: RiskOracle
    constant: float


def analyze_file(job: AnalysisJob) -> FileAnalysis:
    """Retrieve one file's history and replay it."""
    logger.info("Analyzing %s", job.file_name)
    item = job.repo.history(Path(job.file_name), job.repo_root)
    return analyze_history(item, job.risk, job.constant)


@dataclass
class RunReport:
    project_root: Path
    output_dir: Path
    analyzed: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    summary_path: Optional[Path] = None


def build_risk_oracle(config: Config) -> RiskOracle:
    """Risk model shared by every replay; malformed inputs abort the run."""
    return RiskOracle.from_files(
        default_risk=config.risk.default_bus_risk,
        threshold=config.risk.effective_threshold,
        departed_file=Path(config.risk.departed_file) if config.risk.departed_file else None,
        bus_risk_file=Path(config.risk.bus_risk_file) if config.risk.bus_risk_file else None,
    )


def prepare_output_dir(output_dir: Path) -> Path:
    """Create the output directory, dropping the previous run's database and files."""
    output_dir.mkdir(parents=True, exist_ok=True)
    files_dir = output_dir / FILES_DIR
    if files_dir.exists():
        shutil.rmtree(files_dir)
    (output_dir / ".gitignore").write_text("*")
    db_path = output_dir / SUMMARY_DB
    if db_path.exists():
        db_path.unlink()
    return db_path


def run_analysis(project_root: Path, config: Config) -> RunReport:
    """
    Analyze every interesting file under project_root.

    Raises:
        GbatError: On invalid configuration, git failure during
            discovery, or when no interesting files are found
    """
    error = config.validate()
    if error:
        raise GbatError(error)

    repo = GitRepository(project_root, find_git(config.git.exe))
    repo_root = repo.root()
    risk = build_risk_oracle(config)

    file_filter = FileFilter(
        config.files.interesting,
        config.files.not_interesting,
        config.files.case_sensitive,
    )
    fnames = file_filter.select(repo.ls())
    if not fnames:
        raise GbatError("No interesting files found")
    logger.info("Found %d interesting files", len(fnames))

    output_dir = Path(config.output.directory)
    report = RunReport(project_root=repo.project_root, output_dir=output_dir)
    store = SummaryStore(prepare_output_dir(output_dir))

    def record(result: TaskResult) -> None:
        if result.success:
            logger.info("Summarizing %s", result.name)
            store.summarize(result.result)
            report.analyzed.append(result.name)
        else:
            logger.warning("Skipping %s: %s: %s", result.name, result.error_type, result.error)
            report.failed.append((result.name, result.error or ""))

    tasks = [
        file_task(
            analyze_file,
            args=(AnalysisJob(repo, repo_root, fname, risk, config.analysis.creation_constant),),
            name=fname,
        )
        for fname in fnames
    ]

    try:
        with TaskOrchestrator(config.analysis.orchestrator_config()) as orchestrator:
            orchestrator.run(tasks, on_result=record)

        if report.analyzed:
            logger.info("Rendering output")
            renderer = SummaryRenderer(store, output_dir)
            report.summary_path = renderer.render_all(str(repo.project_root))
    finally:
        store.close()

    return report
