"""
Cross-platform file system utilities for ToolsetKit.

This module provides the archive extractor and the file operations the
installer relies on:
- Archive classification and extraction (zip, tar.gz, tar.xz, tar.bz2, 7z)
- Copying files and merging directory trees
- Safe directory removal
- Executable bit handling

Extraction validates every member path so an archive can never write outside
its destination directory.
"""

import logging
import os
import shutil
import stat
import sys
import tarfile
import zipfile
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from toolsetkit.core.exceptions import CopyFailedError, ExtractFailedError

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"
EXE_SUFFIX = ".exe" if IS_WINDOWS else ""


# ============================================================================
# Errors
# ============================================================================


class UnsupportedArchiveFormat(ExtractFailedError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ExtractFailedError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Example:
        >>> is_relative_to(Path("/home/user/project/file.txt"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def is_executable(path: Path) -> bool:
    """Check whether ``path`` is a file the host would run directly."""
    if not path.is_file():
        return False
    if IS_WINDOWS:
        return path.suffix.lower() in (".exe", ".cmd", ".bat", ".ps1")
    return os.access(path, os.X_OK)


def make_executable(path: Path) -> None:
    """Add the execute bits to ``path`` (no-op on Windows)."""
    if IS_WINDOWS:
        return
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


# ============================================================================
# Archive Extraction
# ============================================================================


class ArchiveKind(Enum):
    """Archive formats the extractor understands."""

    ZIP = "zip"
    TAR_GZ = "tar.gz"
    TAR_XZ = "tar.xz"
    TAR_BZ2 = "tar.bz2"
    SEVEN_Z = "7z"


_SUFFIXES = (
    ((".zip", ".vsix"), ArchiveKind.ZIP),
    ((".tar.gz", ".tgz"), ArchiveKind.TAR_GZ),
    ((".tar.xz", ".txz"), ArchiveKind.TAR_XZ),
    ((".tar.bz2", ".tbz2"), ArchiveKind.TAR_BZ2),
    ((".7z",), ArchiveKind.SEVEN_Z),
)


def classify_archive(path: Union[str, Path]) -> Optional[ArchiveKind]:
    """
    Recognize an archive by its file name.

    Args:
        path: Path to a (possibly) compressed file

    Returns:
        The archive kind, or None if ``path`` is not a file with a known
        archive suffix

    Example:
        >>> classify_archive("tool-1.0-linux.tar.gz")
        <ArchiveKind.TAR_GZ: 'tar.gz'>
    """
    path = Path(path)
    if not path.is_file():
        return None

    name = path.name.lower()
    for suffixes, kind in _SUFFIXES:
        if name.endswith(suffixes):
            return kind
    return None


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path], destination: Union[str, Path]
) -> None:
    """
    Extract an archive to a destination directory.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        InsecureArchiveError: If archive contains malicious paths
        ExtractFailedError: If extraction fails

    Example:
        >>> extract_archive('tool.tar.gz', '/tmp/tool')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ExtractFailedError(f"Archive not found: {archive_path}")

    kind = classify_archive(archive_path)
    if kind is None:
        raise UnsupportedArchiveFormat(
            f"Unsupported archive format: {archive_path.name}. "
            "Supported: .zip, .tar.gz, .tar.xz, .tar.bz2, .7z"
        )

    destination.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Extracting {archive_path} ({kind.value}) to {destination}")

    try:
        if kind is ArchiveKind.ZIP:
            _extract_zip(archive_path, destination)
        elif kind is ArchiveKind.SEVEN_Z:
            _extract_7z(archive_path, destination)
        else:
            mode = {
                ArchiveKind.TAR_GZ: "r:gz",
                ArchiveKind.TAR_XZ: "r:xz",
                ArchiveKind.TAR_BZ2: "r:bz2",
            }[kind]
            _extract_tar(archive_path, destination, mode)
    except ExtractFailedError:
        raise
    except Exception as e:
        raise ExtractFailedError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.namelist()

        for member in members:
            _validate_archive_path(member, destination)

        for member in members:
            zf.extract(member, destination)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = tar.getmembers()

        for member in members:
            _validate_archive_path(member.name, destination)

        # Paths are validated above for interpreters without extraction filters
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


def _extract_7z(archive_path: Path, destination: Path) -> None:
    """Extract a .7z archive (requires py7zr)."""
    try:
        import py7zr
    except ImportError:
        raise UnsupportedArchiveFormat(
            "7z extraction requires 'py7zr' package. "
            "Install it with: pip install toolsetkit[7z]"
        )

    with py7zr.SevenZipFile(archive_path, "r") as archive:
        members = archive.getnames()

        for member in members:
            _validate_archive_path(member, destination)

        archive.extractall(destination)


class Extractor:
    """Archive extractor used by the tool acquirer and installer."""

    def try_classify(self, path: Path) -> Optional[ArchiveKind]:
        return classify_archive(path)

    def extract(self, archive: Path, dest: Path) -> None:
        extract_archive(archive, dest)


# ============================================================================
# Copy Operations
# ============================================================================


def copy_into(source: Union[str, Path], directory: Union[str, Path]) -> Path:
    """
    Copy a file or directory into ``directory`` keeping its name.

    Returns:
        Path of the copy

    Raises:
        CopyFailedError: If the copy fails

    Example:
        >>> copy_into('/downloads/tool', '/tmp/scratch')
        PosixPath('/tmp/scratch/tool')
    """
    source = Path(source)
    directory = Path(directory)
    target = directory / source.name

    try:
        directory.mkdir(parents=True, exist_ok=True)
        if source.is_dir():
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            shutil.copy2(source, target)
    except OSError as e:
        raise CopyFailedError(
            f"unable to copy '{source}' into '{directory}': {e}"
        ) from e

    return target


def copy_as(source: Union[str, Path], target: Union[str, Path]) -> Path:
    """Copy a single file to an explicit target path."""
    source = Path(source)
    target = Path(target)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
    except OSError as e:
        raise CopyFailedError(f"unable to copy '{source}' to '{target}': {e}") from e
    return target


def merge_tree(source: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Recursively merge the contents of ``source`` into ``destination``.

    Existing files in the destination are overwritten; others are kept.

    Raises:
        CopyFailedError: If the source is not a directory or a copy fails
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise CopyFailedError(f"Source is not a directory: {source}")

    try:
        destination.mkdir(parents=True, exist_ok=True)
        for item in source.rglob("*"):
            dest_item = destination / item.relative_to(source)
            if item.is_dir():
                dest_item.mkdir(parents=True, exist_ok=True)
            else:
                dest_item.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(item, dest_item)
    except OSError as e:
        raise CopyFailedError(
            f"unable to merge '{source}' into '{destination}': {e}"
        ) from e


# ============================================================================
# Safe Removal
# ============================================================================


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        OSError: If deletion fails

    Example:
        >>> safe_rmtree('/opt/tools/tools/foo', require_prefix='/opt/tools')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if IS_WINDOWS:

        def handle_remove_readonly(func, target, exc):
            """Error handler for Windows read-only files."""
            if not os.access(target, os.W_OK):
                os.chmod(target, stat.S_IWRITE)
                func(target)
            else:
                raise

        shutil.rmtree(path, onerror=handle_remove_readonly)
    else:
        shutil.rmtree(path)


__all__ = [
    "IS_WINDOWS",
    "EXE_SUFFIX",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "is_relative_to",
    "is_executable",
    "make_executable",
    "ArchiveKind",
    "classify_archive",
    "extract_archive",
    "Extractor",
    "copy_into",
    "copy_as",
    "merge_tree",
    "safe_rmtree",
]
