"""
Backup manager for files rewritten by the organizer
"""

import json
import logging
import shutil
import tarfile
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

METADATA_FILE = "session_metadata.json"


@dataclass
class BackupSession:
    """Information about a backup session"""

    session_id: str
    timestamp: str
    directory: Path
    files_backed_up: list[str] = field(default_factory=list)
    total_size: int = 0
    compressed: bool = False


def _relative_backup_path(file_path: Path) -> Path:
    """Location of a file inside a session directory"""
    if file_path.is_absolute():
        return Path(*file_path.parts[1:]) if len(file_path.parts) > 1 else Path(file_path.name)
    return file_path


class BackupManager:
    """Keeps copies of original files in timestamped sessions"""

    def __init__(
        self,
        backup_dir: str = ".csharply-backups",
        compression: bool = False,
        keep_sessions: int = 10,
    ):
        """
        Initialize backup manager

        Args:
            backup_dir: Directory to store backups
            compression: Whether to compress backups
            keep_sessions: Number of backup sessions to keep
        """
        self.backup_dir = Path(backup_dir)
        self.compression = compression
        self.keep_sessions = keep_sessions
        self.current_session: BackupSession | None = None
        # Workers back up files concurrently
        self._lock = threading.Lock()
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def start_session(self, description: str | None = None) -> Path:
        """Start a new backup session"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        session_id = f"session_{timestamp}"
        if description:
            session_id = f"{session_id}_{description}"
        session_dir = self.backup_dir / session_id
        session_dir.mkdir(parents=True, exist_ok=True)
        self.current_session = BackupSession(
            session_id=session_id, timestamp=timestamp, directory=session_dir
        )
        logger.info(f"Started backup session: {session_id}")
        return session_dir

    def backup_file(self, file_path: Path) -> Path | None:
        """Backup a single file"""
        with self._lock:
            if not self.current_session:
                self.start_session()
            session = self.current_session

        if not file_path.exists():
            logger.warning(f"File does not exist: {file_path}")
            return None

        try:
            backup_path = session.directory / _relative_backup_path(file_path)
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file_path, backup_path)

            with self._lock:
                session.files_backed_up.append(str(file_path))
                session.total_size += file_path.stat().st_size

            logger.debug(f"Backed up: {file_path} -> {backup_path}")
            return backup_path

        except Exception as e:
            logger.error(f"Error backing up {file_path}: {e}")
            return None

    def restore_file(
        self, original_path: Path, backup_path: Path | None = None
    ) -> bool:
        """Restore a file from backup"""
        try:
            if backup_path and backup_path.exists():
                shutil.copy2(backup_path, original_path)
                logger.info(f"Restored {original_path} from {backup_path}")
                return True

            if self.current_session:
                session_backup = self.current_session.directory / _relative_backup_path(
                    original_path
                )
                if session_backup.exists():
                    shutil.copy2(session_backup, original_path)
                    logger.info(f"Restored {original_path} from current session")
                    return True

            logger.warning(f"No backup found for {original_path}")
            return False

        except Exception as e:
            logger.error(f"Error restoring {original_path}: {e}")
            return False

    def finalize_session(self) -> Path | None:
        """Write session metadata, compress if requested and prune old sessions"""
        if not self.current_session:
            logger.warning("No active backup session")
            return None

        try:
            metadata_file = self.current_session.directory / METADATA_FILE
            with open(metadata_file, "w") as f:
                json.dump(asdict(self.current_session), f, indent=2, default=str)

            if self.compression:
                archive_path = self._compress_session()
                if archive_path:
                    shutil.rmtree(self.current_session.directory)
                    self.current_session.compressed = True
                    logger.info(f"Compressed backup session to {archive_path}")
                    result = archive_path
                else:
                    result = self.current_session.directory
            else:
                result = self.current_session.directory

            self.cleanup_old_sessions()

            logger.info(f"Finalized backup session: {self.current_session.session_id}")
            self.current_session = None
            return result

        except Exception as e:
            logger.error(f"Error finalizing backup session: {e}")
            return None

    def discard_session(self) -> None:
        """Drop the current session without keeping anything"""
        if not self.current_session:
            return
        shutil.rmtree(self.current_session.directory, ignore_errors=True)
        logger.debug(f"Discarded backup session: {self.current_session.session_id}")
        self.current_session = None

    def _compress_session(self) -> Path | None:
        """Compress current session directory"""
        if not self.current_session:
            return None

        try:
            archive_path = self.backup_dir / f"{self.current_session.session_id}.tar.gz"
            with tarfile.open(archive_path, "w:gz") as tar:
                tar.add(
                    self.current_session.directory,
                    arcname=self.current_session.session_id,
                )
            return archive_path
        except Exception as e:
            logger.error(f"Error compressing session: {e}")
            return None

    def _session_entries(self) -> list[Path]:
        entries = []
        for item in self.backup_dir.iterdir():
            if item.is_dir() and item.name.startswith("session_"):
                entries.append(item)
            elif item.name.endswith(".tar.gz") and item.name.startswith("session_"):
                entries.append(item)
        return entries

    def cleanup_old_sessions(self) -> int:
        """Remove sessions beyond the keep_sessions limit, newest kept first"""
        removed = 0
        try:
            sessions = sorted(self._session_entries(), key=lambda x: x.name, reverse=True)

            for session in sessions[self.keep_sessions :]:
                if session.is_dir():
                    shutil.rmtree(session)
                else:
                    session.unlink()
                removed += 1
                logger.debug(f"Removed old backup: {session}")

        except Exception as e:
            logger.error(f"Error cleaning up old sessions: {e}")
        return removed

    def list_sessions(self) -> list[dict[str, Any]]:
        """List all backup sessions, newest first"""
        sessions = []

        for item in self._session_entries():
            if item.is_dir():
                metadata_file = item / METADATA_FILE
                if metadata_file.exists():
                    with open(metadata_file, "r") as f:
                        sessions.append(json.load(f))
                else:
                    sessions.append(
                        {
                            "session_id": item.name,
                            "directory": str(item),
                            "timestamp": datetime.fromtimestamp(
                                item.stat().st_mtime
                            ).isoformat(),
                        }
                    )
            else:
                session_id = item.name[: -len(".tar.gz")]
                session = {
                    "session_id": session_id,
                    "timestamp": datetime.fromtimestamp(item.stat().st_mtime).isoformat(),
                }
                session.update(self._archived_metadata(item, session_id))
                session.update({"archive": str(item), "compressed": True})
                sessions.append(session)

        return sorted(sessions, key=lambda x: x["session_id"], reverse=True)

    def _archived_metadata(self, archive_path: Path, session_id: str) -> dict[str, Any]:
        """Read session metadata straight from a compressed session"""
        try:
            with tarfile.open(archive_path, "r:gz") as tar:
                member = tar.extractfile(f"{session_id}/{METADATA_FILE}")
                if member is None:
                    return {}
                return json.load(member)
        except (KeyError, tarfile.TarError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable metadata in {archive_path}: {e}")
            return {}

    def restore_session(self, session_id: str) -> bool:
        """Restore all files from a backup session"""
        try:
            session_path = self.backup_dir / session_id
            archive_path = self.backup_dir / f"{session_id}.tar.gz"

            extracted = False
            if archive_path.exists() and not session_path.exists():
                with tarfile.open(archive_path, "r:gz") as tar:
                    tar.extractall(self.backup_dir)
                extracted = True

            if not session_path.exists():
                logger.error(f"Backup session not found: {session_id}")
                return False

            metadata_file = session_path / METADATA_FILE
            if metadata_file.exists():
                with open(metadata_file, "r") as f:
                    metadata = json.load(f)

                for file_path in metadata.get("files_backed_up", []):
                    original = Path(file_path)
                    backup = session_path / _relative_backup_path(original)

                    if backup.exists():
                        original.parent.mkdir(parents=True, exist_ok=True)
                        shutil.copy2(backup, original)
                        logger.info(f"Restored: {original}")

            if extracted:
                shutil.rmtree(session_path)

            return True

        except Exception as e:
            logger.error(f"Error restoring session {session_id}: {e}")
            return False

    def get_backup_for_file(
        self, file_path: Path, session_id: str | None = None
    ) -> Path | None:
        """Get backup path for a specific file"""
        if session_id:
            session_path = self.backup_dir / session_id
        elif self.current_session:
            session_path = self.current_session.directory
        else:
            return None

        backup_path = session_path / _relative_backup_path(file_path)
        return backup_path if backup_path.exists() else None
