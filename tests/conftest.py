import logging
import os

import pytest

# Set up icecream globally for convenience.
from icecream import install

install()


# pytest seems to tweak logging such that assetrun's debug logs go to stderr,
# which is then hella spammy if one is using --capture=no. So, we explicitly
# turn default logging back down.
logging.basicConfig(level=logging.INFO)


@pytest.fixture
def reset_environ():
    """
    Resets `os.environ` to its prior state after the fixtured test finishes.
    """
    old_environ = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(old_environ)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """
    An empty project root, also made the working directory.
    """
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture(autouse=True)
def no_colors(monkeypatch):
    monkeypatch.setattr("assetrun.termcolor.DISABLE_COLORS", True)
