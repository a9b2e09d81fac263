from __future__ import annotations

import pytest

from .fakes import SchedulerWorld


@pytest.fixture
def world():
    return SchedulerWorld()
