"""
Base processor interface for file processing operations
"""

import codecs
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ProcessingStatus(Enum):
    """Status of processing operation"""

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
    NO_CHANGES = "no_changes"


@dataclass
class ProcessResult:
    """Result of a processing operation"""

    file_path: Path
    status: ProcessingStatus
    error_message: str | None = None
    backup_path: Path | None = None
    content: str | None = None  # Organized source, kept in simulate mode

    @property
    def is_success(self) -> bool:
        """Check if processing was successful"""
        return self.status in [ProcessingStatus.SUCCESS, ProcessingStatus.NO_CHANGES]

    @property
    def label(self) -> str:
        """Verb used in per-file reports"""
        if self.status == ProcessingStatus.SKIPPED:
            return "ignored"
        if self.status == ProcessingStatus.ERROR:
            return "failed"
        return "organized"

    def __str__(self) -> str:
        """String representation"""
        if self.status == ProcessingStatus.ERROR:
            return f"{self.label:<10}: {self.file_path} ({self.error_message})"
        return f"{self.label:<10}: {self.file_path}"


class BaseProcessor(ABC):
    """Abstract base class for all file processors"""

    def __init__(
        self,
        config: Any | None = None,
    ):
        """
        Initialize processor

        Args:
            config: Configuration object
        """
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def can_process(self, file_path: Path) -> bool:
        """
        Check if this processor can handle the given file

        Args:
            file_path: Path to file

        Returns:
            True if processor can handle this file type
        """
        pass

    @abstractmethod
    def process_file(
        self,
        file_path: Path,
        **kwargs,
    ) -> ProcessResult:
        """
        Process a single file

        Args:
            file_path: Path to file to process
            **kwargs: Additional processing parameters

        Returns:
            ProcessResult with operation details
        """
        pass

    def read_file(
        self,
        file_path: Path,
    ) -> tuple[str, bool]:
        """
        Read file content

        Args:
            file_path: Path to file

        Returns:
            File content as string and whether it started with a UTF-8 BOM
        """
        try:
            raw = file_path.read_bytes()
        except Exception as e:
            self.logger.error(f"Error reading {file_path}: {e}")
            raise
        has_bom = raw.startswith(codecs.BOM_UTF8)
        return raw.decode("utf-8-sig"), has_bom

    def write_file(
        self,
        file_path: Path,
        content: str,
        bom: bool = False,
    ) -> bool:
        """
        Write content to file

        Args:
            file_path: Path to file
            content: Content to write
            bom: Whether to prefix the file with a UTF-8 BOM

        Returns:
            True if successful
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the line terminators chosen by the engine
            with open(
                file_path,
                "w",
                encoding="utf-8-sig" if bom else "utf-8",
                newline="",
            ) as f:
                f.write(content)
            return True
        except Exception as e:
            self.logger.error(f"Error writing {file_path}: {e}")
            return False
