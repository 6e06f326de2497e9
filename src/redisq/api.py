"""
Main endpoint for users.
Exposes ``redisq``, which installs future-returning methods on a client
module's classes in place, and ``adapt``, which wraps one client instance in
a proxy and leaves its class untouched.
"""

import types
import typing as t

import structlog
from pydantic import BaseModel

from redisq import memory
from redisq.adapter import MethodTable, build_jsonified, build_qualified, install
from redisq.commands import COMMANDS
from redisq.discovery import CommandTable
from redisq.exceptions import AdaptationError
from redisq.options import DEFAULT_SUFFIX, AdapterOptions, Mapper
from redisq.proxy import AdaptedClient

log = structlog.get_logger(__name__)

CLIENT_TYPE = "RedisClient"
BATCH_TYPE = "Multi"


class PlannedMethod(BaseModel):
    """One method ``redisq`` would install."""

    surface: str
    command: str
    mapped: str
    kind: t.Literal["future", "codec"]


def _surfaces(module: types.ModuleType | t.Any) -> tuple[type, type]:
    client_type = getattr(module, CLIENT_TYPE, None)
    batch_type = getattr(module, BATCH_TYPE, None)
    if not isinstance(client_type, type) or not isinstance(batch_type, type):
        raise AdaptationError(
            f"{getattr(module, '__name__', module)!r} must expose {CLIENT_TYPE} and {BATCH_TYPE} classes"
        )
    return client_type, batch_type


def _command_table(
    module: t.Any,
    client_type: type,
    batch_type: type,
    table: CommandTable | None,
) -> CommandTable:
    if table is not None:
        table.validate_against(client=client_type, batch=batch_type)
        return table
    return CommandTable.discover(
        client=client_type,
        batch=batch_type,
        commands=getattr(module, "COMMANDS", None),
    )


def _options(prefix: str, suffix: str, mapper: Mapper | None, json: bool) -> AdapterOptions:
    return AdapterOptions.model_validate({"prefix": prefix, "suffix": suffix, "mapper": mapper, "json": json})


def redisq(
    module: t.Any = None,
    *,
    prefix: str = "",
    suffix: str = DEFAULT_SUFFIX,
    mapper: Mapper | None = None,
    json: bool = False,
    table: CommandTable | None = None,
) -> t.Any:
    """
    Add future-returning methods to a client module's classes, in place.

    Parameters
    ----------
    module : typing.Any
        Module (or namespace) exposing ``RedisClient`` and ``Multi``.
        Defaults to ``redisq.memory``.
    prefix : str, optional
        Prepended to every mapped name.
    suffix : str, optional
        Appended to every mapped name.
    mapper : typing.Callable[[str], str] | None, optional
        Naming function; overrides ``prefix`` and ``suffix``.
    json : bool, optional
        Encode arguments and decode results as JSON.
    table : CommandTable | None, optional
        Explicit command table. Validated against the classes; when omitted
        commands are discovered from ``module.COMMANDS`` or the built-in list.

    Returns
    -------
    typing.Any
        The module itself.

    Notes
    -----
    Applying twice with overlapping mapped names overwrites the earlier
    methods. Use ``adapt`` for an adapted surface that leaves classes alone.

    >>> from redisq import redisq
    >>> from redisq import memory
    >>> client = redisq(memory, json=True).create_client()
    >>> future = client.setQ("k", {"a": 1})  # inside a running event loop
    """
    module = memory if module is None else module
    options = _options(prefix=prefix, suffix=suffix, mapper=mapper, json=json)
    client_type, batch_type = _surfaces(module)
    table = _command_table(module=module, client_type=client_type, batch_type=batch_type, table=table)

    # every table is built before anything is installed, so a rejected
    # name leaves both classes untouched
    client_methods: MethodTable = {}
    batch_methods: MethodTable = {}
    # the batch factory is synchronous
    if options.use_json:
        client_methods.update(
            build_jsonified(target=client_type, names=[table.batch_factory], mapper=options.name_for)
        )
    client_methods.update(
        build_qualified(
            target=client_type, names=table.commands, mapper=options.name_for, use_json=options.use_json
        )
    )

    # batch builder commands only queue and return the builder
    if options.use_json:
        batch_methods.update(
            build_jsonified(target=batch_type, names=table.batch_commands, mapper=options.name_for)
        )
    batch_methods.update(
        build_qualified(
            target=batch_type, names=[table.executor], mapper=options.name_for, use_json=options.use_json
        )
    )

    install(target=client_type, table=client_methods)
    install(target=batch_type, table=batch_methods)

    log.info(
        "adapted client module",
        module=getattr(module, "__name__", None),
        commands=len(table.commands),
        batch_commands=len(table.batch_commands),
        json=options.use_json,
    )
    return module


def adapt(
    client: t.Any,
    *,
    prefix: str = "",
    suffix: str = DEFAULT_SUFFIX,
    mapper: Mapper | None = None,
    json: bool = False,
    table: CommandTable | None = None,
    commands: t.Sequence[str] | None = None,
) -> AdaptedClient:
    """
    Wrap one client instance with future-returning methods.

    Nothing is installed on the client or its class: the returned proxy
    serves the mapped names and forwards everything else. Adapting the same
    client twice yields two independent proxies.

    Parameters
    ----------
    client : typing.Any
        Client instance.
    prefix, suffix, mapper, json
        As for ``redisq``.
    table : CommandTable | None, optional
        Explicit command table, validated against the client now and against
        each batch builder type when the first batch of that type is created.
    commands : typing.Sequence[str] | None, optional
        Reference command names for discovery when ``table`` is omitted.

    Returns
    -------
    AdaptedClient
        Proxy around ``client``.

    Raises
    ------
    MissingCommandError
        If ``table`` declares a client command the client lacks.
    """
    options = _options(prefix=prefix, suffix=suffix, mapper=mapper, json=json)
    client_type = type(client)
    if table is not None:
        table.validate_against(client=client_type)
        reference = None
    else:
        reference = list(COMMANDS if commands is None else commands)
        table = CommandTable.discover(client=client_type, commands=reference)

    methods = build_qualified(
        target=client_type, names=table.commands, mapper=options.name_for, use_json=options.use_json
    )
    factories: MethodTable = {}
    factory = getattr(client_type, table.batch_factory, None)
    if callable(factory):
        factories[table.batch_factory] = factory
        if options.use_json:
            factories.update(
                build_jsonified(target=client_type, names=[table.batch_factory], mapper=options.name_for)
            )
    log.debug("adapted client", client_type=client_type.__name__, methods=len(methods))
    return AdaptedClient(client, methods, factories, table, options, reference)


def plan_adaptation(
    module: t.Any = None,
    *,
    prefix: str = "",
    suffix: str = DEFAULT_SUFFIX,
    mapper: Mapper | None = None,
    json: bool = False,
) -> list[PlannedMethod]:
    """
    Describe the methods ``redisq`` would install, without installing them.
    """
    module = memory if module is None else module
    options = _options(prefix=prefix, suffix=suffix, mapper=mapper, json=json)
    client_type, batch_type = _surfaces(module)
    table = _command_table(module=module, client_type=client_type, batch_type=batch_type, table=None)

    planned: list[PlannedMethod] = []
    if options.use_json:
        planned.append(
            PlannedMethod(
                surface=CLIENT_TYPE,
                command=table.batch_factory,
                mapped=options.name_for(table.batch_factory),
                kind="codec",
            )
        )
    planned.extend(
        PlannedMethod(surface=CLIENT_TYPE, command=name, mapped=options.name_for(name), kind="future")
        for name in table.commands
    )
    if options.use_json:
        planned.extend(
            PlannedMethod(surface=BATCH_TYPE, command=name, mapped=options.name_for(name), kind="codec")
            for name in table.batch_commands
        )
    planned.append(
        PlannedMethod(
            surface=BATCH_TYPE,
            command=table.executor,
            mapped=options.name_for(table.executor),
            kind="future",
        )
    )
    return planned
