"""
Proxies returned by ``adapt``.
We use wrapt so isinstance checks and magic methods keep working on the
adapted client, and override __getattr__ to serve the mapped methods without
touching the client's class.
"""

import types
import typing as t

import structlog
import wrapt

from redisq.adapter import MethodTable, build_jsonified, build_qualified
from redisq.discovery import CommandTable, collect_command_names
from redisq.options import AdapterOptions

log = structlog.get_logger(__name__)


class AdaptedBatch(wrapt.ObjectProxy):
    """
    Batch builder proxy.

    Mapped command methods encode their arguments (codec mode only) and the
    mapped executor returns a future of the ordered replies. Any method that
    returns the wrapped builder returns this proxy instead, so chains such as
    ``batch.setQ(...).mgetQ(...).execQ()`` stay on the proxy.
    """

    def __init__(self, wrapped, methods: MethodTable):
        super().__init__(wrapped)
        self._self_methods = methods

    def __getattr__(self, name):
        if name.startswith("_self_"):
            raise AttributeError(name)
        method = self._self_methods.get(name)
        if method is not None:
            attr = types.MethodType(method, self.__wrapped__)
        else:
            attr = getattr(self.__wrapped__, name)
        if name.startswith("__") or not callable(attr):
            return attr

        def chained(*args, **kwargs):
            result = attr(*args, **kwargs)
            return self if result is self.__wrapped__ else result

        return chained


class AdaptedClient(wrapt.ObjectProxy):
    """
    Client proxy exposing future-returning methods under mapped names.

    Original names still reach the wrapped client unchanged. Batches created
    through a batch factory (the original name, or its mapped name in codec
    mode) come back wrapped in an ``AdaptedBatch``; their methods are built
    once per batch builder type.

    Parameters
    ----------
    wrapped : typing.Any
        Client instance.
    methods : dict[str, typing.Callable[..., typing.Any]]
        Mapped client methods, built against the client's class.
    factories : dict[str, typing.Callable[..., typing.Any]]
        Batch factories by attribute name, built against the client's class.
    table : CommandTable
        Commands being adapted.
    options : AdapterOptions
        Naming and codec options.
    commands : typing.Sequence[str] | None
        Reference command names used to discover batch builder commands.
        ``None`` means ``table.batch_commands`` is authoritative and is
        validated against each new batch builder type.
    """

    def __init__(
        self,
        wrapped,
        methods: MethodTable,
        factories: MethodTable,
        table: CommandTable,
        options: AdapterOptions,
        commands: t.Sequence[str] | None = None,
    ):
        super().__init__(wrapped)
        self._self_methods = methods
        self._self_factories = factories
        self._self_table = table
        self._self_options = options
        self._self_commands = commands
        self._self_batch_methods: dict[type, MethodTable] = {}

    def __getattr__(self, name):
        if name.startswith("_self_"):
            raise AttributeError(name)
        method = self._self_methods.get(name)
        if method is not None:
            return types.MethodType(method, self.__wrapped__)
        factory = self._self_factories.get(name)
        if factory is not None:
            bound = types.MethodType(factory, self.__wrapped__)

            def create_batch(*args, **kwargs):
                return self._wrap_batch(bound(*args, **kwargs))

            return create_batch
        return getattr(self.__wrapped__, name)

    def _wrap_batch(self, batch: t.Any) -> AdaptedBatch:
        batch_type = type(batch)
        methods = self._self_batch_methods.get(batch_type)
        if methods is None:
            methods = self._batch_methods(batch_type)
            self._self_batch_methods[batch_type] = methods
        return AdaptedBatch(batch, methods)

    def _batch_methods(self, batch_type: type) -> MethodTable:
        table, options = self._self_table, self._self_options
        if self._self_commands is None:
            table.validate_against(client=self.__wrapped__, batch=batch_type)
            names = list(table.batch_commands)
        else:
            reserved = {table.batch_factory, table.executor}
            names = [
                name
                for name in collect_command_names(batch_type, self._self_commands)
                if name not in reserved
            ]
        methods: MethodTable = {}
        if options.use_json:
            methods.update(build_jsonified(target=batch_type, names=names, mapper=options.name_for))
        methods.update(
            build_qualified(
                target=batch_type,
                names=[table.executor],
                mapper=options.name_for,
                use_json=options.use_json,
            )
        )
        log.debug("adapted batch builder", batch_type=batch_type.__name__, methods=sorted(methods))
        return methods
