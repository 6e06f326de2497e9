"""
Tests for command discovery in redisq.discovery.
"""

import pytest

from redisq import memory
from redisq.commands import COMMANDS
from redisq.discovery import CommandTable, collect_command_names, is_command_method
from redisq.exceptions import MissingCommandError
from tests.mocks.clients import COMMANDS as MOCK_COMMANDS
from tests.mocks.clients import CallbackBatch, CallbackClient, StaticCommands

CLIENT_COMMANDS = ["get", "set", "fail", "reject", "twice", "threaded", "raises", "silent", "keyword"]


def test_collect_command_names_on_class():
    """Test that the alias and arity rules select command methods."""
    assert collect_command_names(CallbackClient, MOCK_COMMANDS) == CLIENT_COMMANDS


def test_collect_command_names_on_instance():
    """Test that bound methods are compared through their functions."""
    assert collect_command_names(CallbackClient(), MOCK_COMMANDS) == CLIENT_COMMANDS


@pytest.mark.parametrize(
    "name",
    [
        "ping",  # no uppercase alias
        "echo",  # alias points at a different function
        "time",  # zero declared arity
        "info",  # not callable
        "multi",  # zero declared arity
        "missing",
    ],
)
def test_is_command_method_rejects_non_commands(name):
    """Test that helpers which only look like commands are skipped."""
    assert is_command_method(CallbackClient, name) is False


def test_collect_command_names_on_batch_builder():
    """Test discovery on a batch builder, executor included."""
    assert collect_command_names(CallbackBatch, MOCK_COMMANDS) == ["get", "set", "exec"]


def test_collect_command_names_with_staticmethods():
    """Test that staticmethods keep their first parameter in the arity."""
    assert collect_command_names(StaticCommands, ["get", "time"]) == ["get"]


def test_collect_command_names_uses_primary_token_once():
    """Test that subcommand variants contribute their primary name only once."""
    commands = ["get", "client kill", "get", "client list", "set"]

    assert collect_command_names(CallbackClient, commands) == ["get", "set"]


def test_collect_command_names_defaults_to_builtin_reference_list():
    """Test discovery against the built-in command list."""
    names = collect_command_names(memory.RedisClient)

    assert {"get", "set", "mget", "mset", "del", "hgetall", "lrange", "smembers"} <= set(names)
    assert "multi" not in names
    assert len(names) == len(set(names))
    assert names == [name for name in dict.fromkeys(c.split()[0] for c in COMMANDS) if name in names]


def test_command_table_discover_excludes_factory_and_executor():
    """Test that the batch factory and executor are never listed as commands."""
    table = CommandTable.discover(client=memory.RedisClient, batch=memory.Multi)

    assert "multi" not in table.commands
    assert "exec" not in table.batch_commands
    assert "set" in table.commands
    assert "set" in table.batch_commands
    assert table.batch_factory == "multi"
    assert table.executor == "exec"


def test_command_table_without_batch():
    """Test that discovery without a batch builder lists no batch commands."""
    table = CommandTable.discover(client=CallbackClient, commands=MOCK_COMMANDS)

    assert table.commands == tuple(CLIENT_COMMANDS)
    assert table.batch_commands == ()


def test_command_table_validate_against_passes():
    """Test that a table matching the surfaces validates."""
    table = CommandTable(commands=("get", "set"), batch_commands=("set",))

    table.validate_against(client=CallbackClient, batch=CallbackBatch)


def test_command_table_validate_against_fails_loudly():
    """Test that every absent command is reported."""
    table = CommandTable(commands=("get", "hgetall"), batch_commands=("set", "zadd"), executor="run")

    with pytest.raises(MissingCommandError) as excinfo:
        table.validate_against(client=CallbackClient, batch=CallbackBatch)

    assert excinfo.value.missing == ["client.hgetall", "batch.zadd", "batch.run"]
    assert "client.hgetall" in str(excinfo.value)


def test_command_table_is_frozen():
    """Test that command tables cannot be mutated after creation."""
    table = CommandTable(commands=("get",))

    with pytest.raises(Exception):
        table.commands = ("set",)
