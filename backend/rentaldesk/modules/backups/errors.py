# rentaldesk/modules/backups/errors.py

from typing import Optional


class BackupError(RuntimeError):
    """Base error for backup operations."""


class ArtifactGenerationError(BackupError):
    """Agreement document could not be rendered (missing or unparsable required date)."""


class TerminalBackupFailure(BackupError):
    """All attempts to store an agreement backup failed."""

    def __init__(self, message: str, *, attempts: int, last_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class BackupFileNotFound(BackupError):
    """Requested backup file does not exist under the backup root."""


class BackupRootUnavailable(BackupError):
    """Backup root cannot be created or written; the service must not start."""
