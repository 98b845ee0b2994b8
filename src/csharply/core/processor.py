"""
Batch processor that organizes .cs files on disk
"""

import fnmatch
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from csharply.core.backup_manager import BackupManager
from csharply.core.base_processor import BaseProcessor, ProcessingStatus, ProcessResult
from csharply.core.config import Config
from csharply.core.engine import reorganize_and_format

GENERATED_MARKER = "<auto-generated"
GENERATED_HEADER_BYTES = 2048

# Files whose directory is taken as the root of a C# project
PROJECT_MARKERS = ("*.csproj", "*.sln", ".git")


@dataclass
class OrganizeSummary:
    """Outcome of organizing a file or directory"""

    results: list[ProcessResult] = field(default_factory=list)
    duration: float = 0.0  # seconds

    def _paths(self, *statuses: ProcessingStatus) -> list[Path]:
        return [result.file_path for result in self.results if result.status in statuses]

    @property
    def organized(self) -> list[Path]:
        return self._paths(ProcessingStatus.SUCCESS, ProcessingStatus.NO_CHANGES)

    @property
    def ignored(self) -> list[Path]:
        return self._paths(ProcessingStatus.SKIPPED)

    @property
    def failed(self) -> list[Path]:
        return self._paths(ProcessingStatus.ERROR)


def find_project_root(file_path: Path) -> Path:
    """Nearest ancestor holding a project, solution or repository marker.

    Falls back to the directory of the file when no marker is found.
    """
    directory = file_path.absolute().parent
    for candidate in (directory, *directory.parents):
        if any(next(candidate.glob(marker), None) is not None for marker in PROJECT_MARKERS):
            return candidate
    return directory


def format_duration(seconds: float) -> str:
    milliseconds = seconds * 1000
    if milliseconds < 1000:
        return f"{milliseconds:,.0f}ms"
    if seconds < 60:
        return f"{seconds:,.1f}s"
    return f"{seconds / 60:,.1f} minutes"


class CSharpProcessor(BaseProcessor):
    """Organizes C# files, one worker thread per file"""

    def __init__(
        self,
        config: Config | None = None,
        backup_manager: BackupManager | None = None,
    ):
        super().__init__(config or Config())
        self.backup_manager = backup_manager

    # ============================================================
    # FILE SELECTION
    # ============================================================

    def is_ignored(self, file_path: Path, root: Path | None = None) -> bool:
        """Check ignore directories, name patterns and generated-code headers

        Ignored directories only match below root, so a project that itself
        lives under a folder such as bin is still organized. Without a root
        the enclosing project directory is used.
        """
        batch = self.config.batch

        if root is None:
            root = find_project_root(file_path)
        directory = file_path.absolute().parent
        try:
            parts = directory.relative_to(root.absolute()).parts
        except ValueError:
            parts = directory.parts

        ignore_dirs = {name.lower() for name in batch.ignore_dirs}
        if any(part.lower() in ignore_dirs for part in parts):
            return True

        name = file_path.name.lower()
        if any(fnmatch.fnmatchcase(name, pattern.lower()) for pattern in batch.ignore_patterns):
            return True

        if batch.skip_generated and file_path.is_file():
            with open(file_path, "rb") as f:
                header = f.read(GENERATED_HEADER_BYTES)
            if GENERATED_MARKER.encode("ascii") in header:
                return True

        return False

    def can_process(self, file_path: Path, root: Path | None = None) -> bool:
        extensions = [extension.lower() for extension in self.config.batch.extensions]
        return file_path.suffix.lower() in extensions and not self.is_ignored(file_path, root)

    def discover(self, path: Path) -> list[Path]:
        """All candidate files under path, ignored ones included"""
        if path.is_file():
            return [path]

        extensions = {extension.lower() for extension in self.config.batch.extensions}
        return sorted(
            candidate
            for candidate in path.rglob("*")
            if candidate.is_file() and candidate.suffix.lower() in extensions
        )

    # ============================================================
    # PROCESSING
    # ============================================================

    def process_file(
        self,
        file_path: Path,
        **kwargs,
    ) -> ProcessResult:
        """
        Organize a single file

        Args:
            file_path: Path to the .cs file
            **kwargs: dry_run and strict override the configured modes, root
                bounds the directories checked against ignore_dirs

        Returns:
            ProcessResult; failures are reported unless strict
        """
        dry_run = kwargs.get("dry_run", self.config.dry_run)
        strict = kwargs.get("strict", self.config.strict)

        if not self.can_process(file_path, kwargs.get("root")):
            self.logger.debug(f"Ignoring {file_path}")
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.SKIPPED,
                error_message="File ignored",
            )

        try:
            source, bom = self.read_file(file_path)
            organized = reorganize_and_format(source, self.config.organize)

            if organized == source:
                return ProcessResult(
                    file_path=file_path,
                    status=ProcessingStatus.NO_CHANGES,
                    content=organized if dry_run else None,
                )

            if dry_run:
                return ProcessResult(
                    file_path=file_path,
                    status=ProcessingStatus.SUCCESS,
                    content=organized,
                )

            backup_path = None
            if self.backup_manager:
                backup_path = self.backup_manager.backup_file(file_path)

            if not self.write_file(file_path, organized, bom=bom):
                return ProcessResult(
                    file_path=file_path,
                    status=ProcessingStatus.ERROR,
                    error_message="Unable to write file",
                    backup_path=backup_path,
                )

            self.logger.debug(f"Organized {file_path}")
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.SUCCESS,
                backup_path=backup_path,
            )

        except Exception as e:
            self.logger.error(f"Error organizing {file_path}: {e}")
            if strict:
                raise
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.ERROR,
                error_message=str(e),
            )

    def process_batch(
        self,
        file_paths: list[Path],
        **kwargs,
    ) -> list[ProcessResult]:
        """
        Organize files on a bounded thread pool

        Results are collected as workers finish and returned in input order.
        In strict mode the first failure cancels pending files and raises.

        Args:
            file_paths: List of file paths
            **kwargs: Passed to process_file

        Returns:
            List of ProcessResult objects
        """
        results: dict[Path, ProcessResult] = {}

        executor = ThreadPoolExecutor(max_workers=max(1, self.config.batch.max_workers))
        try:
            futures = {
                executor.submit(self.process_file, file_path, **kwargs): file_path
                for file_path in file_paths
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        return [results[file_path] for file_path in file_paths]

    def organize_path(self, path: Path, **kwargs) -> OrganizeSummary:
        """Organize a file or every candidate file below a directory"""
        started = time.perf_counter()
        if path.is_dir():
            kwargs.setdefault("root", path)
        results = self.process_batch(self.discover(path), **kwargs)
        return OrganizeSummary(results=results, duration=time.perf_counter() - started)
