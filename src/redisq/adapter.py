"""
Turn callback-terminated command methods into future-returning ones.

``qualify`` installs methods that append a completion handler and hand back an
``asyncio.Future``; ``jsonify`` installs synchronous methods that only run the
arguments through the codec. Both add attributes under mapped names and leave
the original methods untouched.

Targets may be classes (the new attributes are plain functions taking the
receiver) or instances (the new attributes close over the bound originals).
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import typing as t

import structlog

from redisq.codec import decode, encode
from redisq.exceptions import AdaptationError, CommandError

log = structlog.get_logger(__name__)

Mapper = t.Callable[[str], str]
MethodTable = dict[str, t.Callable[..., t.Any]]


def _encode_call(args: tuple[t.Any, ...], kwargs: dict[str, t.Any]) -> tuple[list[t.Any], dict[str, t.Any]]:
    encoded_kwargs = dict(zip(kwargs, encode(kwargs.values()))) if kwargs else {}
    return encode(args), encoded_kwargs


def _settle(
    future: asyncio.Future[t.Any],
    command: str,
    error: t.Any,
    result: t.Any,
    use_json: bool,
) -> None:
    """
    Resolve or reject ``future`` from a completion handler outcome.

    Runs on the loop that owns the future. A future that is already done
    (cancelled by the caller, or a handler invoked twice) is left alone.
    """
    if future.done():
        log.warning(
            "completion ignored, future already settled",
            command=command,
            cancelled=future.cancelled(),
        )
        return
    # falsy error values (None, False, 0, "") mean success
    if error:
        if not isinstance(error, BaseException):
            error = CommandError(error)
        future.set_exception(error)
        return
    try:
        value = decode(result) if use_json else result
    except Exception as exc:
        log.error("decoding reply failed", command=command, error=repr(exc))
        future.set_exception(exc)
        return
    future.set_result(value)


def _call_with_future(
    call: t.Callable[..., t.Any],
    command: str,
    args: tuple[t.Any, ...],
    kwargs: dict[str, t.Any],
    use_json: bool,
) -> asyncio.Future[t.Any]:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[t.Any] = loop.create_future()
    call_args: t.Sequence[t.Any] = args
    if use_json:
        call_args, kwargs = _encode_call(args=args, kwargs=kwargs)

    def on_complete(error: t.Any = None, result: t.Any = None, *_: t.Any) -> None:
        # client callbacks may fire off the loop thread
        loop.call_soon_threadsafe(_settle, future, command, error, result, use_json)

    call(*call_args, on_complete, **kwargs)
    return future


def _lookup(target: t.Any, name: str) -> t.Callable[..., t.Any] | None:
    func = getattr(target, name, None)
    if not callable(func):
        log.warning("skip command, function not found", command=name)
        return None
    return func


def _mapped_name(name: str, mapper: Mapper) -> str:
    mapped = mapper(name)
    if mapped == name:
        raise AdaptationError(f"mapped name for {name!r} must differ from the original")
    return mapped


def _takes_receiver(target: t.Any, name: str) -> bool:
    """Whether the class attribute ``name`` is called with the instance."""
    return isinstance(target, type) and not isinstance(
        inspect.getattr_static(target, name), (staticmethod, classmethod)
    )


def _future_method(
    target: t.Any, name: str, func: t.Callable[..., t.Any], use_json: bool
) -> t.Callable[..., t.Any]:
    if isinstance(target, type):
        receiver = _takes_receiver(target=target, name=name)

        @functools.wraps(func)
        def method(self: t.Any, *args: t.Any, **kwargs: t.Any) -> asyncio.Future[t.Any]:
            return _call_with_future(
                call=functools.partial(func, self) if receiver else func,
                command=name,
                args=args,
                kwargs=kwargs,
                use_json=use_json,
            )

    else:

        @functools.wraps(func)
        def method(*args: t.Any, **kwargs: t.Any) -> asyncio.Future[t.Any]:
            return _call_with_future(
                call=func, command=name, args=args, kwargs=kwargs, use_json=use_json
            )

    return method


def _codec_method(target: t.Any, name: str, func: t.Callable[..., t.Any]) -> t.Callable[..., t.Any]:
    if isinstance(target, type):
        receiver = _takes_receiver(target=target, name=name)

        @functools.wraps(func)
        def method(self: t.Any, *args: t.Any, **kwargs: t.Any) -> t.Any:
            call_args, call_kwargs = _encode_call(args=args, kwargs=kwargs)
            if receiver:
                call_args.insert(0, self)
            return func(*call_args, **call_kwargs)

    else:

        @functools.wraps(func)
        def method(*args: t.Any, **kwargs: t.Any) -> t.Any:
            call_args, call_kwargs = _encode_call(args=args, kwargs=kwargs)
            return func(*call_args, **call_kwargs)

    return method


def build_qualified(
    target: t.Any,
    names: t.Iterable[str],
    mapper: Mapper,
    use_json: bool = False,
) -> MethodTable:
    """
    Build future-returning methods without installing them.

    Parameters
    ----------
    target : typing.Any
        Class or instance holding the callback-terminated originals.
    names : typing.Iterable[str]
        Original method names. Missing or non-callable ones are skipped.
    mapper : typing.Callable[[str], str]
        Naming function for the new methods.
    use_json : bool
        Encode arguments and decode results through the codec.

    Returns
    -------
    dict[str, typing.Callable[..., typing.Any]]
        Mapped name to new method.

    Raises
    ------
    AdaptationError
        If ``mapper`` returns a name equal to the original one.
    """
    table: MethodTable = {}
    for name in names:
        func = _lookup(target=target, name=name)
        if func is None:
            continue
        mapped = _mapped_name(name=name, mapper=mapper)
        log.debug("qualify command", command=name, mapped=mapped, json=use_json)
        table[mapped] = _future_method(target=target, name=name, func=func, use_json=use_json)
    return table


def build_jsonified(target: t.Any, names: t.Iterable[str], mapper: Mapper) -> MethodTable:
    """
    Build synchronous codec-only methods without installing them.

    The new methods return whatever the original returns, so builder chaining
    keeps working.
    """
    table: MethodTable = {}
    for name in names:
        func = _lookup(target=target, name=name)
        if func is None:
            continue
        mapped = _mapped_name(name=name, mapper=mapper)
        log.debug("jsonify command", command=name, mapped=mapped)
        table[mapped] = _codec_method(target=target, name=name, func=func)
    return table


def install(target: t.Any, table: MethodTable) -> None:
    """Set every entry of ``table`` on ``target``, overwriting same-named attributes."""
    for mapped, method in table.items():
        setattr(target, mapped, method)


def qualify(
    target: t.Any,
    names: t.Iterable[str],
    mapper: Mapper,
    use_json: bool = False,
) -> MethodTable:
    """
    Install future-returning variants of ``names`` on ``target``.

    Each new method creates a future on the running event loop, optionally
    encodes its arguments, calls the original with a completion handler
    appended, and returns the future at once. The handler rejects the future
    with the reported error or resolves it with the (optionally decoded)
    result.

    Parameters
    ----------
    target : typing.Any
        Class or instance holding the callback-terminated originals.
    names : typing.Iterable[str]
        Original method names.
    mapper : typing.Callable[[str], str]
        Naming function for the new methods.
    use_json : bool
        Enable the codec.

    Returns
    -------
    dict[str, typing.Callable[..., typing.Any]]
        The installed methods by mapped name.
    """
    table = build_qualified(target=target, names=names, mapper=mapper, use_json=use_json)
    install(target=target, table=table)
    return table


def jsonify(target: t.Any, names: t.Iterable[str], mapper: Mapper) -> MethodTable:
    """
    Install synchronous codec-only variants of ``names`` on ``target``.

    Returns
    -------
    dict[str, typing.Callable[..., typing.Any]]
        The installed methods by mapped name.
    """
    table = build_jsonified(target=target, names=names, mapper=mapper)
    install(target=target, table=table)
    return table
