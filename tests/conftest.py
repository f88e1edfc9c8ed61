import os
from pathlib import Path

import pytest

# Test directory -> marker applied to every test collected beneath it.
_LAYER_MARKERS = {"domain": "domain", "application": "application", "integration": "integration"}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="domain.toml overlay the ledger is initialized with (test, production)",
    )


def pytest_sessionstart(session):
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("LOG_DIR", str(Path(session.config.rootpath) / ".pytest_logs"))


def pytest_collection_modifyitems(config, items):
    for item in items:
        layer = next((part for part in Path(item.fspath).parts if part in _LAYER_MARKERS), None)
        if layer is None:
            continue
        item.add_marker(getattr(pytest.mark, _LAYER_MARKERS[layer]))
        if layer == "integration" and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
