"""
Shared CLI runner helper.

Wrappers call ``run`` so that tools always execute from the project root,
whatever directory the wrapper was started from.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def run(cmd: Sequence[str]) -> None:
    """
    Run a tool from the project root and exit with its return code.

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"])
    """
    result = subprocess.run(cmd, cwd=PROJECT_ROOT)
    raise SystemExit(result.returncode)
