"""
Find the command methods a client surface exposes.

Two ways are supported:

- the structural heuristic in ``collect_command_names``: a command is a
  callable reachable under its lowercase name, aliased under its uppercase
  name, with a non-zero declared arity;
- an explicit ``CommandTable`` that names every command up front and is
  validated against the real surfaces, failing loudly when one is missing.
"""

from __future__ import annotations

import inspect
import typing as t

import structlog
from pydantic import BaseModel, ConfigDict

from redisq.commands import COMMANDS
from redisq.exceptions import MissingCommandError

log = structlog.get_logger(__name__)


def _same_function(first: t.Any, second: t.Any) -> bool:
    # bound methods are recreated on every attribute access
    return getattr(first, "__func__", first) is getattr(second, "__func__", second)


def _declared_arity(target: t.Any, name: str, func: t.Callable[..., t.Any]) -> int | None:
    """
    Count the parameters a command method declares, receiver excluded.

    Returns ``None`` when the callable has no introspectable signature.
    """
    try:
        parameters = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return None
    if isinstance(target, type) and inspect.isfunction(func):
        if not isinstance(inspect.getattr_static(target, name, None), staticmethod):
            parameters = parameters[1:]
    return len(parameters)


def is_command_method(target: t.Any, name: str) -> bool:
    """
    Check whether ``target.<name>`` looks like an unwrapped command method.

    Parameters
    ----------
    target : typing.Any
        Client or batch builder, either a class or an instance.
    name : str
        Lowercase command name.

    Returns
    -------
    bool
        ``True`` when the lowercase and uppercase attributes hold the same
        callable and its declared arity is not zero.
    """
    func = getattr(target, name, None)
    if not callable(func):
        return False
    if not _same_function(func, getattr(target, name.upper(), None)):
        return False
    return _declared_arity(target, name, func) != 0


def collect_command_names(
    target: t.Any,
    commands: t.Iterable[str] | None = None,
) -> list[str]:
    """
    List the command methods defined on ``target``.

    Parameters
    ----------
    target : typing.Any
        Client or batch builder, either a class or an instance.
    commands : typing.Iterable[str] | None
        Reference command names. Defaults to ``redisq.commands.COMMANDS``.

    Returns
    -------
    list[str]
        Primary command names found on the target, de-duplicated, in the
        order of the reference list.
    """
    found: dict[str, None] = {}
    for command in COMMANDS if commands is None else commands:
        name = command.split()[0]
        if name not in found and is_command_method(target, name):
            found[name] = None
    log.debug(
        "collected command methods",
        target=getattr(target, "__name__", type(target).__name__),
        count=len(found),
    )
    return list(found)


class CommandTable(BaseModel):
    """
    Capability descriptor for a client and its batch builder.

    Attributes
    ----------
    commands : tuple[str, ...]
        Callback-terminated client commands to turn into future methods.
    batch_commands : tuple[str, ...]
        Synchronous batch builder commands (codec wrapping only).
    batch_factory : str
        Client method that creates a batch builder.
    executor : str
        Batch builder method that runs the queued commands.
    """

    model_config = ConfigDict(frozen=True)

    commands: tuple[str, ...] = ()
    batch_commands: tuple[str, ...] = ()
    batch_factory: str = "multi"
    executor: str = "exec"

    @classmethod
    def discover(
        cls,
        client: t.Any,
        batch: t.Any | None = None,
        commands: t.Iterable[str] | None = None,
        batch_factory: str = "multi",
        executor: str = "exec",
    ) -> "CommandTable":
        """
        Build a table from the structural heuristic.

        The batch factory and the executor are never listed as commands:
        neither is an ordinary callback-terminated command.
        """
        commands = None if commands is None else list(commands)
        reserved = {batch_factory, executor}
        client_names = [
            name for name in collect_command_names(client, commands) if name not in reserved
        ]
        batch_names = (
            []
            if batch is None
            else [name for name in collect_command_names(batch, commands) if name not in reserved]
        )
        return cls(
            commands=tuple(client_names),
            batch_commands=tuple(batch_names),
            batch_factory=batch_factory,
            executor=executor,
        )

    def missing_from(self, client: t.Any, batch: t.Any | None = None) -> list[str]:
        """
        List declared commands absent from the given surfaces.
        """
        missing = [
            f"client.{name}"
            for name in self.commands
            if not callable(getattr(client, name, None))
        ]
        if batch is not None:
            missing.extend(
                f"batch.{name}"
                for name in (*self.batch_commands, self.executor)
                if not callable(getattr(batch, name, None))
            )
        return missing

    def validate_against(self, client: t.Any, batch: t.Any | None = None) -> None:
        """
        Raise ``MissingCommandError`` if any declared command is absent.

        Parameters
        ----------
        client : typing.Any
            Client class or instance.
        batch : typing.Any | None
            Batch builder class or instance. Skipped when ``None``.
        """
        missing = self.missing_from(client=client, batch=batch)
        if missing:
            raise MissingCommandError(missing)
