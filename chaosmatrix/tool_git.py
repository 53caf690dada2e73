"""Git history for each user's task document, via dulwich."""

from __future__ import annotations

import logging
from pathlib import Path

from dulwich import porcelain
from dulwich.repo import Repo

from chaosmatrix.errors import ToolError
from chaosmatrix.tool_utils import _atomic_write

logger = logging.getLogger(__name__)


def _resolve_git_head(data_root: Path) -> str | None:
    """Sha of the latest commit, or None when nothing has been committed."""
    if not (data_root / ".git").exists():
        return None
    try:
        return Repo(data_root).head().decode("ascii")
    except KeyError:
        return None


def _ensure_git_repo(data_root: Path) -> Repo:
    try:
        if (data_root / ".git").exists():
            return Repo(data_root)
        logger.info("initializing task history repository at %s", data_root)
        return porcelain.init(data_root)
    except Exception as exc:
        raise ToolError(
            "GIT_ERROR",
            "Git repository could not be initialized.",
            {"path": str(data_root)},
        ) from exc


def _commit_task_change(repo: Repo, relative_path: Path, operation: str) -> str:
    repo.get_worktree().stage([relative_path.as_posix()])
    commit_sha = porcelain.commit(
        repo, message=f"{operation}: {relative_path.as_posix()}"
    )
    if isinstance(commit_sha, bytes):
        return commit_sha.decode("ascii")
    return str(commit_sha)


def _rollback_task_change(
    repo: Repo,
    target_path: Path,
    relative_path: Path,
    original_content: str | None,
) -> None:
    """Put the task document back as it was before a failed commit."""
    if original_content is not None:
        _atomic_write(target_path, original_content)
    else:
        target_path.unlink(missing_ok=True)
    try:
        repo.get_worktree().stage([relative_path.as_posix()])
    except Exception:
        logger.warning("could not restage %s after rollback", relative_path)
