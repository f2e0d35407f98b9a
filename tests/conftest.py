from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

import pytest

from shared.settings import Settings


@pytest.fixture
def settings():
    # short directory keeps socket paths under the AF_UNIX length limit
    channel_dir = Path(tempfile.mkdtemp(prefix="pc-"))
    yield Settings(channel_dir=channel_dir, connect_timeout_ms=100, drain_timeout=1.0, poll_interval=0.001)
    shutil.rmtree(channel_dir, ignore_errors=True)
