import copy
import shutil
import tempfile
from pathlib import Path

import pytest

from phpns.utils.config import DEFAULT_CONFIG

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def php_project(temp_dir):
    src = FIXTURES_DIR / "php_project"
    dst = temp_dir / "php_project"
    shutil.copytree(src, dst)
    return dst


@pytest.fixture
def isolated_config(temp_dir, monkeypatch):
    cache_dir = temp_dir / "cache"
    config_dir = temp_dir / "config"
    cache_dir.mkdir()
    config_dir.mkdir()

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))

    return {"cache": cache_dir, "config": config_dir}


@pytest.fixture
def default_config():
    return copy.deepcopy(DEFAULT_CONFIG)
