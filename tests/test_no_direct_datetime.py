from __future__ import annotations

import re
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = ROOT / "school_api"

# Fee due dates, overdue marking and receipt months all read the clock through TimeProvider.
CLOCK_CALL = re.compile(r"\b(?:datetime\.(?:now|utcnow|today)|date\.today)\(")
ALLOWED = {"core/time_provider.py"}


def _source_files() -> list[Path]:
    return sorted(
        path
        for path in PACKAGE_DIR.rglob("*.py")
        if path.relative_to(PACKAGE_DIR).as_posix() not in ALLOWED
    )


@pytest.mark.parametrize("path", _source_files(), ids=lambda path: path.relative_to(PACKAGE_DIR).as_posix())
def test_module_reads_clock_through_time_provider(path: Path) -> None:
    violations = [
        f"{idx}: {line.strip()}"
        for idx, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1)
        if CLOCK_CALL.search(line)
    ]
    assert not violations, f"{path.relative_to(ROOT)} calls the clock directly:\n" + "\n".join(violations)
