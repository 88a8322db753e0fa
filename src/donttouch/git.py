"""
git queries - staged files and files pending push.

Every call shells out to the git binary found on PATH. Failures raise
SubprocessUnavailable; callers decide whether that is fatal.
"""

import logging
import subprocess
from pathlib import Path

from donttouch.errors import SubprocessUnavailable

log = logging.getLogger(__name__)

GIT_TIMEOUT = 30

# What `rev-parse --abbrev-ref HEAD` prints when no branch is checked out
DETACHED = "HEAD"


def run_git(root: Path, *args: str) -> subprocess.CompletedProcess:
    """Run a git command in root. Raises SubprocessUnavailable if git cannot run."""
    cmd = ["git", "-c", "core.quotepath=off", *args]
    try:
        return subprocess.run(
            cmd,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError as e:
        raise SubprocessUnavailable("git not found on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise SubprocessUnavailable(f"git {args[0]} timed out") from e


def _output(root: Path, *args: str) -> str:
    result = run_git(root, *args)
    if result.returncode != 0:
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise SubprocessUnavailable(f"git {' '.join(args)} failed: {detail}")
    return result.stdout


def _names(output: str) -> list[str]:
    return sorted({line.strip() for line in output.splitlines() if line.strip()})


def staged_files(root: Path) -> list[str]:
    """Paths staged for the next commit, relative to the repository root."""
    return _names(_output(root, "diff", "--cached", "--name-only"))


def current_branch(root: Path) -> str:
    return _output(root, "rev-parse", "--abbrev-ref", "HEAD").strip()


def has_ref(root: Path, ref: str) -> bool:
    result = run_git(root, "rev-parse", "--verify", "--quiet", ref)
    return result.returncode == 0


def pending_push_files(root: Path, remote: str = "origin") -> list[str]:
    """
    Paths touched by commits that a push of the current branch would send.

    Diffs remote/branch..HEAD when the tracking ref exists; on a first push
    every file in the history up to HEAD counts. A detached HEAD has no
    branch, so it is compared against everything the remote already has.
    """
    branch = current_branch(root)
    if branch == DETACHED:
        log.debug("Detached HEAD; listing commits not on any %s branch", remote)
        args = ("log", "--name-only", "--pretty=format:", "HEAD", "--not", f"--remotes={remote}")
        return _names(_output(root, *args))

    tracking = f"refs/remotes/{remote}/{branch}"
    if has_ref(root, tracking):
        return _names(_output(root, "diff", "--name-only", f"{remote}/{branch}..HEAD"))

    log.debug("No %s; treating as first push of %s", tracking, branch)
    return _names(_output(root, "log", "--name-only", "--pretty=format:", "HEAD"))
