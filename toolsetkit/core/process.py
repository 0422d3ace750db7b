"""
Subprocess execution for ToolsetKit.

The Executor is the only place the installer starts external programs
(the toolchain manager init program, the package manager, vendor
installers). A non-zero exit status becomes SubprocessFailedError.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from toolsetkit.core.exceptions import SubprocessFailedError

logger = logging.getLogger(__name__)


class Executor:
    """Runs external programs and propagates their exit status."""

    def run(
        self,
        program: Union[str, Path],
        args: Sequence[str],
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Run ``program`` with ``args`` and wait for it to finish.

        Args:
            program: Program name (looked up on PATH) or path
            args: Command-line arguments
            env: Extra environment variables layered over the current ones

        Raises:
            SubprocessFailedError: If the program cannot be started or exits
                with a non-zero status
        """
        program = str(program)
        cmd = [program, *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        full_env = None
        if env:
            full_env = dict(os.environ)
            full_env.update(env)

        try:
            result = subprocess.run(cmd, env=full_env)
        except OSError as e:
            raise SubprocessFailedError(program, None, str(e)) from e

        if result.returncode != 0:
            raise SubprocessFailedError(program, result.returncode)


class RecordingExecutor(Executor):
    """
    Executor that records calls instead of running them.

    Used for dry runs, where every command is logged but nothing is started.
    """

    def __init__(self):
        self.calls: List[Tuple[str, List[str]]] = []

    def run(self, program, args, env=None) -> None:
        self.calls.append((str(program), list(args)))
        logger.info(f"[dry-run] would run: {program} {' '.join(args)}")
