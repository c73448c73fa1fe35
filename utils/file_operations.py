"""
File operations and backup utilities for subtitle processing.

This module provides safe file operations including:
- Backup creation with timestamps
- Safe writing of exported subtitle text
- Derivation of the adjusted export path
"""

import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional
from .constants import ADJUSTED_EXPORT_SUFFIX, BACKUP_DIR_NAME
from .logging_config import get_logger

logger = get_logger(__name__)


class FileHandler:
    """Handles file operations with proper error handling and logging."""

    @staticmethod
    def create_backup(file_path: Path, backup_dir: Optional[Path] = None) -> Path:
        """
        Create a backup of the file with timestamp.

        Args:
            file_path: Path to the file to backup
            backup_dir: Optional custom backup directory

        Returns:
            Path to the created backup file

        Raises:
            FileNotFoundError: If the file does not exist
            IOError: If backup creation fails

        Example:
            >>> backup_path = FileHandler.create_backup(Path("movie_adjusted.srt"))
            >>> print(f"Backup created at: {backup_path}")
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if backup_dir is None:
            backup_dir = file_path.parent / BACKUP_DIR_NAME

        backup_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = backup_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"

        try:
            shutil.copy2(file_path, backup_path)
            logger.debug(f"Created backup: {backup_path}")
            return backup_path
        except OSError as e:
            logger.error(f"Failed to create backup for {file_path}: {e}")
            raise IOError(f"Backup creation failed: {e}")

    @staticmethod
    def safe_write(file_path: Path, content: str, encoding: str = 'utf-8',
                   create_backup: bool = True) -> None:
        """
        Safely write content to a file with optional backup.

        Line endings in ``content`` are written untouched, so CRLF exports
        keep their CRLF terminators on every platform.

        Args:
            file_path: Path to write to
            content: Content to write
            encoding: File encoding to use
            create_backup: Whether to create backup if file exists

        Raises:
            IOError: If write operation fails
        """
        try:
            if create_backup and file_path.exists():
                FileHandler.create_backup(file_path)

            file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(file_path, 'w', encoding=encoding, newline='') as f:
                f.write(content)

            logger.debug(f"Successfully wrote file: {file_path}")

        except OSError as e:
            logger.error(f"Failed to write file {file_path}: {e}")
            raise IOError(f"Write operation failed: {e}")

    @staticmethod
    def adjusted_export_path(file_path: Path) -> Path:
        """
        Suggested location for the adjusted export of ``file_path``.

        Example:
            >>> FileHandler.adjusted_export_path(Path("/media/movie.sub"))
            PosixPath('/media/movie_adjusted.srt')
        """
        return file_path.with_name(file_path.stem + ADJUSTED_EXPORT_SUFFIX)
