"""
Tests for log setup and document event records.
"""

import json
import logging

import pytest

from webindex.utils.config import LoggingConfig
from webindex.utils.logger import JSONFormatter, NoiseFilter, get_index_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    before, level = set(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def make_record(name="webindex.test", level=logging.INFO, **extra):
    record = logging.LogRecord(name, level, __file__, 1, "message %s", ("text",), None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_document_fields():
    record = make_record(document="a.html", source="file", event="indexed")

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "message text"
    assert entry["document"] == "a.html"
    assert entry["source"] == "file"
    assert entry["event"] == "indexed"
    assert "exception" not in entry


def test_noise_filter():
    noise = NoiseFilter()

    assert not noise.filter(make_record(name="aiohttp.access"))
    assert not noise.filter(make_record(name="asyncio", level=logging.DEBUG))
    assert noise.filter(make_record(name="asyncio", level=logging.WARNING))
    assert noise.filter(make_record(name="webindex.index.builder"))


def test_document_events_reach_log_files(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "webindex.log"
    setup_logging(LoggingConfig(level="DEBUG", file=str(log_file)), enable_json=True)

    logger = get_index_logger("webindex.test", "web")
    logger.log_document_event(logging.DEBUG, "http://site.test/", "indexed", "3 words")
    logger.error("broken")
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = [json.loads(line) for line in log_file.read_text(encoding='utf-8').splitlines()]
    indexed = [line for line in lines if line.get("event") == "indexed"]
    assert indexed[0]["document"] == "http://site.test/"
    assert indexed[0]["source"] == "web"
    assert indexed[0]["message"] == "[indexed] 3 words"

    errors = (tmp_path / "logs" / "errors.log").read_text(encoding='utf-8')
    assert "broken" in errors
    assert "indexed" not in errors
