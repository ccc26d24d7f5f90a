"""
Version helpers for btcrpc.

A static PEP 440 ``__version__`` plus ``git describe`` metadata when running
from a checkout (useful for dev builds and the proxy's /version endpoint).
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Bump this when publishing
__version__ = "0.1.0"


@dataclass(frozen=True)
class VersionInfo:
    base: str
    git: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.base if not self.git else f"{self.base} ({self.git})"


def _repo_root() -> Optional[Path]:
    here = Path(__file__).resolve().parent
    for p in [here, *here.parents][:4]:
        if (p / ".git").exists():
            return p
    return None


def git_describe() -> Optional[str]:
    """
    `git describe --tags --dirty --always` for a checkout, else the
    GIT_DESCRIBE environment variable (set by CI images), else None.
    """
    root = _repo_root()
    if root is not None:
        try:
            out = subprocess.run(
                ["git", "describe", "--tags", "--dirty", "--always"],
                cwd=root,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                timeout=2.0,
            )
            desc = out.stdout.strip()
            if desc:
                return desc
        except (OSError, subprocess.SubprocessError):
            pass
    return os.getenv("GIT_DESCRIBE") or None


def version_info() -> VersionInfo:
    return VersionInfo(base=__version__, git=git_describe())


def version() -> str:
    """Human-friendly string, e.g. '0.1.0 (v0.1.0-3-gabc1234)'."""
    return str(version_info())


__all__ = ["__version__", "VersionInfo", "git_describe", "version_info", "version"]
