import pytest

from redisq import memory
from tests.mocks.clients import CallbackBatch, CallbackClient, StaticCommands

_PATCHED_CLASSES = (memory.RedisClient, memory.Multi, CallbackClient, CallbackBatch, StaticCommands)


@pytest.fixture(autouse=True)
def restore_classes():
    """Remove methods installed in place on test classes after each test."""
    originals = {cls: dict(vars(cls)) for cls in _PATCHED_CLASSES}

    yield

    for cls, attrs in originals.items():
        for name in set(vars(cls)) - set(attrs):
            delattr(cls, name)
        for name, value in attrs.items():
            if vars(cls).get(name) is not value:
                setattr(cls, name, value)


@pytest.fixture(autouse=True)
def test_set_env(monkeypatch):
    monkeypatch.delenv("REDISQ_DEBUG", raising=False)


@pytest.fixture
def db():
    """Shared backing storage for in-memory clients."""
    return {}
