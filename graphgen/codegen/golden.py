"""
Golden-file verification.

Compares a generated output tree byte-for-byte with a committed reference
tree and reports the first line-level differences of each file. Accepting
the current output rewrites the reference tree; do it only for intended
changes.
"""

import shutil
from dataclasses import dataclass, field
from enum import Enum
from itertools import zip_longest
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_REPORTED = 10


class GoldenMismatchError(Exception):
    """Generated output differs from the reference copy."""

    def __init__(self, report: "GoldenReport"):
        self.report = report
        super().__init__(report.format())


class FileStatus(Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    MISSING = "missing"  # reference exists, nothing generated
    UNEXPECTED = "unexpected"  # generated, no reference


@dataclass
class LineDiff:
    """One differing line; None means the side has no such line."""

    line: int
    expected: Optional[str]
    actual: Optional[str]


@dataclass
class FileReport:
    path: str
    status: FileStatus
    diffs: List[LineDiff] = field(default_factory=list)
    total_diffs: int = 0

    @property
    def ok(self) -> bool:
        return self.status is FileStatus.MATCH


@dataclass
class GoldenReport:
    """Outcome of comparing a generated tree with the reference tree."""

    files: List[FileReport] = field(default_factory=list)
    max_reported: int = DEFAULT_MAX_REPORTED

    @property
    def ok(self) -> bool:
        return all(f.ok for f in self.files)

    @property
    def failures(self) -> List[FileReport]:
        return [f for f in self.files if not f.ok]

    def format(self) -> str:
        """Human-readable summary listing each failing file and its first diffs."""
        if self.ok:
            return f"{len(self.files)} files match the golden references"

        lines = [f"{len(self.failures)} of {len(self.files)} files differ from the golden references"]
        for report in self.failures:
            if report.status is FileStatus.MISSING:
                lines.append(f"{report.path}: not generated")
                continue
            if report.status is FileStatus.UNEXPECTED:
                lines.append(f"{report.path}: generated but has no golden reference")
                continue
            lines.append(f"{report.path}: {report.total_diffs} differing lines")
            for diff in report.diffs:
                lines.append(f"  line {diff.line}:")
                lines.append(f"    golden:    {_show(diff.expected)}")
                lines.append(f"    generated: {_show(diff.actual)}")
            remaining = report.total_diffs - len(report.diffs)
            if remaining > 0:
                lines.append(f"  ... and {remaining} more differences")
        return "\n".join(lines)


def _show(line: Optional[str]) -> str:
    return "<end of file>" if line is None else repr(line)


def diff_lines(expected: bytes, actual: bytes, max_reported: int = DEFAULT_MAX_REPORTED) -> FileReport:
    """Compare two file contents; the report's path is left empty."""
    if expected == actual:
        return FileReport(path="", status=FileStatus.MATCH)

    expected_lines = expected.decode("utf-8", errors="replace").splitlines(keepends=True)
    actual_lines = actual.decode("utf-8", errors="replace").splitlines(keepends=True)

    diffs = []
    total = 0
    for number, (want, got) in enumerate(zip_longest(expected_lines, actual_lines), start=1):
        if want == got:
            continue
        total += 1
        if len(diffs) < max_reported:
            diffs.append(LineDiff(number, want, got))

    return FileReport(path="", status=FileStatus.MISMATCH, diffs=diffs, total_diffs=total)


def _collect(root: Path) -> Dict[str, Path]:
    if not root.is_dir():
        return {}
    return {
        p.relative_to(root).as_posix(): p
        for p in sorted(root.rglob("*"))
        if p.is_file() and not any(part.startswith(".") for part in p.relative_to(root).parts)
    }


class GoldenHarness:
    """Compares generated trees with a golden reference directory."""

    def __init__(self, golden_dir: Union[str, Path], max_reported: int = DEFAULT_MAX_REPORTED):
        self.golden_dir = Path(golden_dir)
        self.max_reported = max_reported

    def has_references(self) -> bool:
        return bool(_collect(self.golden_dir))

    def compare(self, generated_dir: Union[str, Path]) -> GoldenReport:
        """
        Compare every file under generated_dir with its reference.

        Returns:
            Report with one entry per file on either side, sorted by path
        """
        golden = _collect(self.golden_dir)
        generated = _collect(Path(generated_dir))
        report = GoldenReport(max_reported=self.max_reported)

        for path in sorted(set(golden) | set(generated)):
            if path not in generated:
                report.files.append(FileReport(path, FileStatus.MISSING))
            elif path not in golden:
                report.files.append(FileReport(path, FileStatus.UNEXPECTED))
            else:
                result = diff_lines(golden[path].read_bytes(), generated[path].read_bytes(), self.max_reported)
                result.path = path
                report.files.append(result)

        logger.debug(
            "Compared %d files against %s: %d differ",
            len(report.files),
            self.golden_dir,
            len(report.failures),
        )
        return report

    def accept(self, generated_dir: Union[str, Path]) -> List[Path]:
        """Replace the reference tree with a copy of generated_dir."""
        generated = _collect(Path(generated_dir))
        if self.golden_dir.exists():
            shutil.rmtree(self.golden_dir)
        written = []
        for relative, source in generated.items():
            target = self.golden_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            written.append(target)
        logger.info("Updated %d golden files in %s", len(written), self.golden_dir)
        return written

    def verify(self, generated_dir: Union[str, Path], update: bool = False) -> GoldenReport:
        """
        Check generated_dir against the references.

        Args:
            generated_dir: Freshly generated output tree
            update: Accept the generated output as the new reference instead

        Raises:
            GoldenMismatchError: If any file differs and update is False
        """
        if update:
            self.accept(generated_dir)
            return self.compare(generated_dir)

        report = self.compare(generated_dir)
        if not report.ok:
            logger.error("Golden verification failed for %d files", len(report.failures))
            raise GoldenMismatchError(report)
        return report
