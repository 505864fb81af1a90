from pathlib import Path
from textwrap import dedent

import pytest
from loguru import logger

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def log_capture():
    """Capture loguru records as dicts with level and message."""
    captured_logs: list[dict] = []

    def sink(message):
        record = message.record
        captured_logs.append({
            "level": record["level"].name,
            "message": record["message"],
        })

    handler_id = logger.add(sink, level="DEBUG", format="{message}")
    yield captured_logs
    logger.remove(handler_id)


@pytest.fixture
def go_tree(tmp_path):
    """Write Go sources under tmp_path: go_tree({"pkg/a.go": "..."}) -> root."""

    def write(files: dict[str, str], root: Path = tmp_path) -> Path:
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(text).lstrip(), encoding="utf-8")
        return root

    return write
