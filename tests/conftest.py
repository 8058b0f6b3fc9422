import asyncio
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('TRAVEL_API_BASE_URL', 'https://travel.example.test/api')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

from app.schemas.subscription import Subscription  # noqa: E402


def _make_subscription(status: Any = 'Active', sub_id: str = 'sub-1') -> Subscription:
    return Subscription(id=sub_id, user_id=7, plan_id=2, plan_name='Explorer', status=status)


class ScriptedSource:
    """Returns (or raises) the scripted responses in order, then keeps returning None."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls = 0
        self.closed = False

    async def get_my_subscription(self) -> Optional[Subscription]:
        self.calls += 1
        item = self.responses.pop(0) if self.responses else None
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class BlockingSource:
    """First call parks until released; later calls return None."""

    def __init__(self, result: Any):
        self.result = result
        self.calls = 0
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def get_my_subscription(self) -> Optional[Subscription]:
        self.calls += 1
        if self.calls == 1:
            self.entered.set()
            await self.release.wait()
            return self.result
        return None


@pytest.fixture
def make_subscription():
    return _make_subscription


@pytest.fixture
def scripted_source():
    return ScriptedSource


@pytest.fixture
def blocking_source():
    return BlockingSource
