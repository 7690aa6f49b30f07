from __future__ import annotations

from pathlib import Path

from catalog_browser.config import ConfigLocator
from catalog_browser.logging_conf import log_file, tail_log


def test_log_files_live_under_locator_logs_dir(catalog_home: Path) -> None:
    logs_dir = ConfigLocator().logs_dir
    assert logs_dir == catalog_home.resolve() / "logs"
    assert log_file("catalog") == logs_dir / "catalog.log"
    assert log_file("error") == logs_dir / "error.log"
    assert log_file("authors") == logs_dir / "sessions" / "authors.log"


def test_tail_log(tmp_path: Path) -> None:
    path = tmp_path / "sample.log"
    assert tail_log(path) == []
    path.write_text("a\nb\nc\n", encoding="utf-8")
    assert tail_log(path, 2) == ["b\n", "c\n"]
