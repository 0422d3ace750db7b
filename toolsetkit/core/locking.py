"""
Exclusive ownership of an install root.

An install or uninstall session holds a file lock inside the install root
for its whole duration, so two sessions can never write the same directory
at once. Uses the `filelock` library for cross-platform, cross-process
locking that is released automatically if the process dies.

Usage:
    from toolsetkit.core.locking import install_lock

    with install_lock(layout):
        ...
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from toolsetkit.core.exceptions import InstallLockedError

logger = logging.getLogger(__name__)

LOCK_FILENAME = ".install.lock"


def lock_path_for(layout) -> Path:
    """Lock file location for an install root."""
    return layout.temp() / LOCK_FILENAME


@contextmanager
def install_lock(layout, timeout: int = 5):
    """
    Acquire the session lock of an install root.

    Args:
        layout: PathLayout of the install root
        timeout: Maximum wait time in seconds

    Raises:
        InstallLockedError: If another session holds the lock
    """
    lock_path = lock_path_for(layout)
    lock = FileLock(lock_path, timeout=timeout)

    try:
        with lock:
            logger.debug(f"Acquired install lock: {lock_path}")
            yield
            logger.debug(f"Released install lock: {lock_path}")
    except LockTimeout as e:
        raise InstallLockedError(
            f"Could not acquire install lock after {timeout}s. "
            f"Another session may be using '{layout.install_dir}'."
        ) from e
