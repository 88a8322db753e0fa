"""Shared fixtures for donttouch tests."""

import shutil
import subprocess
from pathlib import Path

import pytest

from donttouch import config
from donttouch.paths import CONFIG_NAME

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def write_files(root: Path, *names: str) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"contents of {name}\n")


def git(root: Path, *args: str) -> str:
    """Run git in root with a throwaway identity; hooks are never run."""
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=Test",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=root,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory with a sibling-friendly parent."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def scenario(project: Path) -> Path:
    """.env and secrets/a.txt protected, readme.md unrelated; all writable."""
    project.joinpath(CONFIG_NAME).write_text(config.render([".env", "secrets/**"]))
    write_files(project, ".env", "secrets/a.txt", "readme.md")
    return project


@pytest.fixture
def git_repo(project: Path) -> Path:
    """A git repository on branch main with one commit."""
    git(project, "init", "-q")
    git(project, "symbolic-ref", "HEAD", "refs/heads/main")
    write_files(project, "readme.md")
    git(project, "add", "readme.md")
    git(project, "commit", "-q", "--no-verify", "-m", "initial")
    return project
