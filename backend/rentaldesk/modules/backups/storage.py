# rentaldesk/modules/backups/storage.py

import os
import re
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Optional

from loguru import logger

from .errors import BackupFileNotFound, BackupRootUnavailable

SUBDIRECTORIES = ("agreements", "vehicles", "database-dumps", "logs")

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def sanitize_name(name: str) -> str:
    return _NON_ALNUM.sub("", name or "")


class BackupStore:
    """
    Directory hierarchy under the configured backup root.

    Every path handed back to callers is a POSIX path relative to the root; that
    relative form is what ends up in `backup_metadata.file_path`.

        <root>/agreements/<year>/<MM>-<MonthName>/<number>_<renter>_<YYYY-MM-DD>.{pdf,json}
        <root>/vehicles/vehicles_export_<YYYY-MM-DD>.csv
        <root>/database-dumps/full_backup_<YYYY-MM-DD>.json
        <root>/logs/
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    def ensure_directories(self) -> None:
        """Creates the four fixed subtrees. Idempotent."""
        try:
            for name in SUBDIRECTORIES:
                path = self.root / name
                path.mkdir(parents=True, exist_ok=True)
                logger.info(f"Initialized directory: {path}")
        except OSError as exc:
            logger.critical(f"Error initializing backup directories under {self.root}: {exc}")
            raise BackupRootUnavailable(f"Cannot create backup directories under {self.root}: {exc}") from exc
        if not os.access(self.root, os.W_OK):
            logger.critical(f"Backup root {self.root} is not writable")
            raise BackupRootUnavailable(f"Backup root {self.root} is not writable")

    def agreement_base_path(self, agreement_number: str, renter_name: str, when: datetime) -> str:
        """Base path shared by an agreement's .pdf and .json (no extension)."""
        month_dir = f"{when.month:02d}-{_MONTH_NAMES[when.month - 1]}"
        filename = f"{agreement_number}_{sanitize_name(renter_name)}_{when.date().isoformat()}"
        return str(PurePosixPath("agreements", str(when.year), month_dir, filename))

    def vehicle_export_path(self, when: datetime) -> str:
        return str(PurePosixPath("vehicles", f"vehicles_export_{when.date().isoformat()}.csv"))

    def database_dump_path(self, when: datetime) -> str:
        return str(PurePosixPath("database-dumps", f"full_backup_{when.date().isoformat()}.json"))

    def path_for(
        self,
        kind: str,
        *,
        when: datetime,
        agreement_number: Optional[str] = None,
        renter_name: Optional[str] = None,
    ) -> str:
        if kind == "agreement":
            if not agreement_number:
                raise ValueError("agreement_number is required for agreement backups")
            return self.agreement_base_path(agreement_number, renter_name or "", when)
        if kind == "csv":
            return self.vehicle_export_path(when)
        if kind == "database-dump":
            return self.database_dump_path(when)
        raise ValueError(f"Unknown backup path kind: {kind}")

    def _confined(self, relative_path: str) -> Optional[Path]:
        """Absolute location of a root-relative path, or None when it escapes the root."""
        root = self.root.resolve()
        candidate = (root / relative_path.lstrip("/")).resolve()
        if candidate != root and root not in candidate.parents:
            return None
        return candidate

    def resolve(self, relative_path: str) -> Path:
        """Absolute location of a stored backup. Paths escaping the root are reported as not found."""
        candidate = self._confined(relative_path)
        if candidate is None:
            raise BackupFileNotFound(f"Backup path outside of root: {relative_path}")
        return candidate

    def write(self, relative_path: str, data: bytes | str) -> int:
        """Writes a file (creating parents) and returns its size on disk."""
        target = self._confined(relative_path)
        if target is None:
            logger.error(f"Refusing to write outside the backup root: {relative_path}")
            raise ValueError(f"Backup path outside of root: {relative_path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            data = data.encode("utf-8")
        target.write_bytes(data)
        size = target.stat().st_size
        logger.debug(f"Wrote {relative_path} ({size} bytes)")
        return size

    def read(self, relative_path: str) -> bytes:
        target = self.resolve(relative_path)
        if not target.is_file():
            logger.error(f"Backup file not found: {relative_path}")
            raise BackupFileNotFound(f"Backup file not found: {relative_path}")
        return target.read_bytes()

    def directory_size_bytes(self, root: Optional[Path] = None) -> int:
        """Recursive sum of file sizes. Symlinked directories are not followed."""
        base = Path(root) if root is not None else self.root
        total = 0
        for dirpath, _dirnames, filenames in os.walk(base):
            for filename in filenames:
                path = Path(dirpath) / filename
                if path.is_symlink():
                    continue
                total += path.stat().st_size
        return total
