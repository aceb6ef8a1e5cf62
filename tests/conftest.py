from __future__ import annotations

import pytest

from debugctx.config import reset_config
from tests.fakes import Scheduler


@pytest.fixture(autouse=True)
def _reset_global_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture(params=["immediate", "deferred", "threaded"])
def scheduler(request) -> Scheduler:
    """A backend scheduler for each delivery mode."""
    return Scheduler(request.param)
