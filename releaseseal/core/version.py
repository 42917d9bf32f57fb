"""Release versions — literal, or derived from git history.

The history-derived version walks every commit reachable from the tip of a
branch and classifies it by parent count:

* one parent  -> ``patch += 1``
* two parents -> ``minor += 1`` (a merge of two lines of history)
* anything else (root commits, octopus merges) is not counted.

``major`` is supplied by the caller.  Only the totals matter, so the walk
order is irrelevant.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from releaseseal.errors import InputError, VersionResolutionError

logger = logging.getLogger(__name__)

_VERSION_PATTERN = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


def format_version(major: int, minor: int, patch: int) -> str:
    return f"v{major}.{minor}.{patch}"


@runtime_checkable
class Versioner(Protocol):
    """Anything that can produce a release version string."""

    def version(self) -> str:
        """Return a ``v{major}.{minor}.{patch}`` string."""
        ...


class ProvidedVersion:
    """A fixed, caller-supplied version.  Never fails."""

    def __init__(self, major: int, minor: int, patch: int) -> None:
        self._version = format_version(major, minor, patch)

    @classmethod
    def parse(cls, text: str) -> ProvidedVersion:
        """Build from ``vMAJOR.MINOR.PATCH`` (the leading ``v`` is optional)."""
        match = _VERSION_PATTERN.match(text.strip())
        if match is None:
            raise InputError(f"invalid version: {text}")
        return cls(*(int(part) for part in match.groups()))

    def version(self) -> str:
        return self._version


class GitHistoryVersion:
    """Derives ``v{major}.{merges}.{commits}`` from a branch's history.

    Resolving the version checks out *branch* in the working tree, exactly
    like a release build would.

    Parameters
    ----------
    repository_path:
        Root of the git working tree.
    branch:
        Local branch to check out and walk.
    major:
        Major version; not derived from history.
    git:
        The git executable to run.
    """

    def __init__(
        self,
        repository_path: Path | str,
        branch: str,
        major: int,
        *,
        git: str = "git",
    ) -> None:
        self.repository_path = Path(repository_path)
        self.branch = branch
        self.major = major
        self._git = git

    def _run(self, *args: str) -> str:
        executable = shutil.which(self._git)
        if executable is None:
            raise FileNotFoundError(f"git executable not found: {self._git}")
        result = subprocess.run(
            [executable, "-C", str(self.repository_path), *args],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    def _step(self, description: str, *args: str) -> str:
        try:
            return self._run(*args)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise VersionResolutionError(f"{description}: {detail}") from exc
        except OSError as exc:
            raise VersionResolutionError(f"{description}: {exc}") from exc

    def version(self) -> str:
        if not self.repository_path.is_dir():
            raise VersionResolutionError(
                f"failed to open git repository: {self.repository_path} does not exist"
            )
        self._step("failed to open git repository", "rev-parse", "--git-dir")
        self._step(
            f"failed to checkout branch: {self.branch}",
            "checkout", "--quiet", self.branch, "--",
        )
        log = self._step("failed to fetch the git log", "rev-list", "--parents", "HEAD")

        minor = patch = 0
        for line in log.splitlines():
            parents = len(line.split()) - 1
            if parents == 1:
                patch += 1
            elif parents == 2:
                minor += 1

        version = format_version(self.major, minor, patch)
        logger.info(
            "Derived version %s from %s@%s", version, self.repository_path, self.branch
        )
        return version
