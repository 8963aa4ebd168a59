"""
Git collaborator - turns `git diff` output into a DiffRecord.

Only plain `git` subprocess calls; refs are validated before they reach
the command line.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional

from .errors import GitUnavailable
from .models import ChangeStatus, DiffFile, DiffHunk, DiffRecord

logger = logging.getLogger(__name__)


# Security: validate git ref names to prevent command injection
_SAFE_REF_PATTERN = re.compile(r'^[a-zA-Z0-9_./@^~{}\-]+$')

# Parse unified diff headers: @@ -start[,count] +start[,count] @@
_HUNK_HEADER = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@')

_DIFF_HEADER = re.compile(r'^diff --git a/(.+) b/(.+)$')


def validate_ref(ref: str) -> bool:
    """Validate a git ref to prevent command injection."""
    return (
        bool(ref)
        and len(ref) <= 256
        and not ref.startswith("-")
        and bool(_SAFE_REF_PATTERN.match(ref))
    )


def parse_unified_diff(diff_text: str) -> list[DiffFile]:
    """
    Parse `git diff -M --unified=0` output into DiffFiles.

    Status comes from the extended headers (new file / deleted file /
    rename), line counts from the +/- lines inside hunks.
    """
    files: list[DiffFile] = []
    current: Optional[DiffFile] = None
    in_hunk = False

    for line in diff_text.split("\n"):
        match = _DIFF_HEADER.match(line)
        if match:
            current = DiffFile(path=match.group(2), old_path=match.group(1))
            files.append(current)
            in_hunk = False
            continue
        if current is None:
            continue

        if in_hunk:
            if line.startswith("+"):
                current.additions += 1
                continue
            if line.startswith("-"):
                current.deletions += 1
                continue

        if line.startswith("@@ "):
            m = _HUNK_HEADER.match(line)
            if m:
                current.hunks.append(DiffHunk(
                    old_start=int(m.group(1)),
                    old_lines=int(m.group(2)) if m.group(2) is not None else 1,
                    new_start=int(m.group(3)),
                    new_lines=int(m.group(4)) if m.group(4) is not None else 1,
                ))
                in_hunk = True
        elif in_hunk:
            # "\ No newline at end of file" and similar markers
            continue
        elif line.startswith("new file mode"):
            current.status = ChangeStatus.ADDED
        elif line.startswith("deleted file mode"):
            current.status = ChangeStatus.DELETED
        elif line.startswith("rename from "):
            current.status = ChangeStatus.RENAMED
            current.old_path = line[len("rename from "):]
        elif line.startswith("rename to "):
            current.path = line[len("rename to "):]
        elif line.startswith("+++ b/"):
            current.path = line[6:]
        elif line.startswith("--- a/"):
            current.old_path = line[6:]

    for f in files:
        if f.status == ChangeStatus.DELETED and f.old_path:
            f.path = f.old_path
        if f.status != ChangeStatus.RENAMED:
            f.old_path = None
    return files


class GitClient:
    """
    Thin wrapper over the git binary for one working tree.

    Every failure (git missing, not a repository, bad ref, timeout)
    surfaces as GitUnavailable.
    """

    def __init__(self, root, timeout: int = 30):
        self.root = Path(root)
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        cmd = ["git", "-C", str(self.root), *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise GitUnavailable("git executable not found") from e
        except subprocess.TimeoutExpired as e:
            raise GitUnavailable(f"git {args[0]} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise GitUnavailable(result.stderr.strip() or f"git {args[0]} exited with {result.returncode}")
        return result.stdout

    def is_git_repo(self) -> bool:
        try:
            return self._run("rev-parse", "--is-inside-work-tree").strip() == "true"
        except GitUnavailable:
            return False

    def ref_exists(self, ref: str) -> bool:
        if not validate_ref(ref):
            return False
        try:
            self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
            return True
        except GitUnavailable:
            return False

    def _diff(self, *args: str, base: str, head: str) -> DiffRecord:
        text = self._run("diff", "--unified=0", "--no-color", "--no-ext-diff", "-M", *args)
        record = DiffRecord(files=parse_unified_diff(text), base=base, head=head)
        logger.debug("git diff %s..%s: %s", base, head or "worktree", record.stats())
        return record

    def get_diff(self, base: str = "HEAD", head: Optional[str] = None) -> DiffRecord:
        """
        Diff base against head, or against the working tree when head is None.
        """
        for ref in (base, head):
            if ref is not None and not validate_ref(ref):
                raise GitUnavailable(f"invalid git ref: {ref!r}")
        args = [base] if head is None else [base, head]
        return self._diff(*args, "--", base=base, head=head or "")

    def get_staged_diff(self) -> DiffRecord:
        return self._diff("--cached", "--", base="HEAD", head="staged")

    def show_file(self, ref: str, path: str) -> Optional[str]:
        """Content of path at ref, or None when it does not exist there."""
        if not validate_ref(ref):
            raise GitUnavailable(f"invalid git ref: {ref!r}")
        try:
            return self._run("show", f"{ref}:{path}")
        except GitUnavailable:
            return None
