"""
In-process key-value client with callback-terminated command methods.

This is the default target of ``redisq.redisq`` and the collaborator used by
the test suite. It mirrors the calling convention redisq adapts:

- every command is a method reachable under a lowercase name and an
  uppercase alias, taking ``*args`` with an optional trailing
  ``callback(error, result)``;
- ``RedisClient.multi()`` returns a ``Multi`` batch builder whose command
  methods queue and return the builder, and whose ``exec(callback)`` runs the
  queue and reports an ordered list of replies.

Values are stored as strings: anything else is coerced with ``str()``, which
is lossy for lists and dicts on purpose.
"""

from __future__ import annotations

import fnmatch
import typing as t

import structlog

log = structlog.get_logger(__name__)

Callback = t.Callable[[t.Any, t.Any], t.Any]
Handler = t.Callable[..., t.Any]

OK = "OK"


class ReplyError(Exception):
    """Error reply for a single command (wrong type, wrong arity, bad value)."""


class _Command(t.NamedTuple):
    handler: Handler
    min_args: int
    max_args: int | None


_COMMANDS: dict[str, _Command] = {}


def _command(name: str, min_args: int, max_args: int | None = None) -> t.Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        _COMMANDS[name] = _Command(handler=handler, min_args=min_args, max_args=max_args)
        return handler

    return register


def _to_wire(value: t.Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _to_int(value: t.Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ReplyError("ERR value is not an integer or out of range") from None


def _typed(db: dict[str, t.Any], key: str, kind: type) -> t.Any:
    value = db.get(key)
    if value is not None and not isinstance(value, kind):
        raise ReplyError("WRONGTYPE Operation against a key holding the wrong kind of value")
    return value


def _pairs(args: t.Sequence[t.Any]) -> list[tuple[t.Any, t.Any]]:
    if len(args) % 2:
        raise ReplyError("ERR wrong number of arguments")
    return list(zip(args[::2], args[1::2]))


# strings


@_command("get", 1, 1)
def _get(db, key):
    return _typed(db, _to_wire(key), str)


@_command("set", 2, 2)
def _set(db, key, value):
    db[_to_wire(key)] = _to_wire(value)
    return OK


@_command("setnx", 2, 2)
def _setnx(db, key, value):
    key = _to_wire(key)
    if key in db:
        return 0
    db[key] = _to_wire(value)
    return 1


@_command("getset", 2, 2)
def _getset(db, key, value):
    previous = _get(db, key)
    db[_to_wire(key)] = _to_wire(value)
    return previous


@_command("mget", 1)
def _mget(db, *keys):
    values = [db.get(_to_wire(key)) for key in keys]
    return [value if isinstance(value, str) else None for value in values]


@_command("mset", 2)
def _mset(db, *args):
    for key, value in _pairs(args):
        db[_to_wire(key)] = _to_wire(value)
    return OK


@_command("append", 2, 2)
def _append(db, key, value):
    key = _to_wire(key)
    db[key] = (_typed(db, key, str) or "") + _to_wire(value)
    return len(db[key])


@_command("strlen", 1, 1)
def _strlen(db, key):
    return len(_typed(db, _to_wire(key), str) or "")


@_command("incrby", 2, 2)
def _incrby(db, key, amount):
    key = _to_wire(key)
    value = _to_int(_typed(db, key, str) or 0) + _to_int(amount)
    db[key] = str(value)
    return value


@_command("incr", 1, 1)
def _incr(db, key):
    return _incrby(db, key, 1)


@_command("decrby", 2, 2)
def _decrby(db, key, amount):
    return _incrby(db, key, -_to_int(amount))


@_command("decr", 1, 1)
def _decr(db, key):
    return _incrby(db, key, -1)


# keys


@_command("del", 1)
def _del(db, *keys):
    return sum(1 for key in keys if db.pop(_to_wire(key), None) is not None)


@_command("exists", 1)
def _exists(db, *keys):
    return sum(1 for key in keys if _to_wire(key) in db)


@_command("keys", 1, 1)
def _keys(db, pattern):
    return sorted(key for key in db if fnmatch.fnmatchcase(key, _to_wire(pattern)))


@_command("type", 1, 1)
def _type(db, key):
    kinds = {str: "string", dict: "hash", list: "list", set: "set"}
    value = db.get(_to_wire(key))
    return "none" if value is None else kinds[type(value)]


@_command("dbsize", 0, 0)
def _dbsize(db):
    return len(db)


@_command("flushdb", 0, 0)
def _flushdb(db):
    db.clear()
    return OK


@_command("ping", 0, 1)
def _ping(db, message=None):
    return "PONG" if message is None else _to_wire(message)


@_command("echo", 1, 1)
def _echo(db, message):
    return _to_wire(message)


# hashes


@_command("hset", 3, 3)
def _hset(db, key, field, value):
    key, field = _to_wire(key), _to_wire(field)
    mapping = db.setdefault(key, {}) if _typed(db, key, dict) is None else db[key]
    created = field not in mapping
    mapping[field] = _to_wire(value)
    return int(created)


@_command("hget", 2, 2)
def _hget(db, key, field):
    return (_typed(db, _to_wire(key), dict) or {}).get(_to_wire(field))


@_command("hmset", 3)
def _hmset(db, key, *args):
    for field, value in _pairs(args):
        _hset(db, key, field, value)
    return OK


@_command("hmget", 2)
def _hmget(db, key, *fields):
    mapping = _typed(db, _to_wire(key), dict) or {}
    return [mapping.get(_to_wire(field)) for field in fields]


@_command("hgetall", 1, 1)
def _hgetall(db, key):
    return dict(_typed(db, _to_wire(key), dict) or {})


@_command("hdel", 2)
def _hdel(db, key, *fields):
    mapping = _typed(db, _to_wire(key), dict) or {}
    return sum(1 for field in fields if mapping.pop(_to_wire(field), None) is not None)


@_command("hexists", 2, 2)
def _hexists(db, key, field):
    return int(_to_wire(field) in (_typed(db, _to_wire(key), dict) or {}))


@_command("hkeys", 1, 1)
def _hkeys(db, key):
    return list(_typed(db, _to_wire(key), dict) or {})


@_command("hvals", 1, 1)
def _hvals(db, key):
    return list((_typed(db, _to_wire(key), dict) or {}).values())


@_command("hlen", 1, 1)
def _hlen(db, key):
    return len(_typed(db, _to_wire(key), dict) or {})


# lists


def _push(db, key, values, left):
    key = _to_wire(key)
    items = db.setdefault(key, []) if _typed(db, key, list) is None else db[key]
    for value in values:
        if left:
            items.insert(0, _to_wire(value))
        else:
            items.append(_to_wire(value))
    return len(items)


@_command("lpush", 2)
def _lpush(db, key, *values):
    return _push(db, key, values, left=True)


@_command("rpush", 2)
def _rpush(db, key, *values):
    return _push(db, key, values, left=False)


def _pop(db, key, index):
    key = _to_wire(key)
    items = _typed(db, key, list)
    if not items:
        return None
    value = items.pop(index)
    if not items:
        del db[key]
    return value


@_command("lpop", 1, 1)
def _lpop(db, key):
    return _pop(db, key, 0)


@_command("rpop", 1, 1)
def _rpop(db, key):
    return _pop(db, key, -1)


@_command("llen", 1, 1)
def _llen(db, key):
    return len(_typed(db, _to_wire(key), list) or [])


@_command("lrange", 3, 3)
def _lrange(db, key, start, stop):
    items = _typed(db, _to_wire(key), list) or []
    start, stop = _to_int(start), _to_int(stop)
    stop = len(items) if stop == -1 else stop + 1
    return items[start:stop]


# sets


@_command("sadd", 2)
def _sadd(db, key, *members):
    key = _to_wire(key)
    members_set = db.setdefault(key, set()) if _typed(db, key, set) is None else db[key]
    before = len(members_set)
    members_set.update(_to_wire(member) for member in members)
    return len(members_set) - before


@_command("srem", 2)
def _srem(db, key, *members):
    members_set = _typed(db, _to_wire(key), set) or set()
    removed = 0
    for member in members:
        if _to_wire(member) in members_set:
            members_set.discard(_to_wire(member))
            removed += 1
    return removed


@_command("smembers", 1, 1)
def _smembers(db, key):
    return sorted(_typed(db, _to_wire(key), set) or set())


@_command("sismember", 2, 2)
def _sismember(db, key, member):
    return int(_to_wire(member) in (_typed(db, _to_wire(key), set) or set()))


@_command("scard", 1, 1)
def _scard(db, key):
    return len(_typed(db, _to_wire(key), set) or set())


def _run(db: dict[str, t.Any], name: str, args: t.Sequence[t.Any]) -> t.Any:
    command = _COMMANDS[name]
    # array notation: client.mset(["k1", "v1", "k2", "v2"])
    if len(args) == 1 and isinstance(args[0], list):
        args = args[0]
    if len(args) < command.min_args or (command.max_args is not None and len(args) > command.max_args):
        raise ReplyError(f"ERR wrong number of arguments for '{name}' command")
    return command.handler(db, *args)


def _split_callback(args: tuple[t.Any, ...]) -> tuple[tuple[t.Any, ...], Callback | None]:
    if args and callable(args[-1]):
        return args[:-1], args[-1]
    return args, None


def _client_method(name: str) -> t.Callable[..., None]:
    def method(self: "RedisClient", *args: t.Any) -> None:
        args, callback = _split_callback(args)
        self.send_command(name, args, callback)

    method.__name__ = method.__qualname__ = name
    return method


def _batch_method(name: str) -> t.Callable[..., "Multi"]:
    def method(self: "Multi", *args: t.Any) -> "Multi":
        self.queue.append((name, args))
        return self

    method.__name__ = method.__qualname__ = name
    return method


class RedisClient:
    """
    Callback-style client over a process-local dictionary.

    Parameters
    ----------
    db : dict[str, typing.Any] | None
        Backing storage; share it between clients to share data.
    """

    def __init__(self, db: dict[str, t.Any] | None = None) -> None:
        self.db: dict[str, t.Any] = {} if db is None else db

    def send_command(self, name: str, args: t.Sequence[t.Any], callback: Callback | None = None) -> None:
        """Run one command and report the outcome through ``callback``."""
        try:
            result = _run(self.db, name, args)
        except ReplyError as error:
            log.debug("command failed", command=name, error=str(error))
            if callback is not None:
                callback(error, None)
            return
        if callback is not None:
            callback(None, result)

    def multi(self) -> "Multi":
        """Start a batch of commands executed together by ``Multi.exec``."""
        return Multi(client=self)

    MULTI = multi


class Multi:
    """
    Batch builder: command methods queue and return the builder itself.
    """

    def __init__(self, client: RedisClient) -> None:
        self.client = client
        self.queue: list[tuple[str, tuple[t.Any, ...]]] = []

    def exec(self, *args: t.Any) -> None:
        """
        Run the queued commands in order.

        ``callback(None, replies)`` receives one reply per queued command; a
        command that failed contributes its ``ReplyError`` instead.
        """
        _, callback = _split_callback(args)
        queue, self.queue = self.queue, []
        replies: list[t.Any] = []
        for name, command_args in queue:
            try:
                replies.append(_run(self.client.db, name, command_args))
            except ReplyError as error:
                replies.append(error)
        if callback is not None:
            callback(None, replies)

    EXEC = exec


for _name in _COMMANDS:
    for _target, _factory in ((RedisClient, _client_method), (Multi, _batch_method)):
        _method = _factory(_name)
        setattr(_target, _name, _method)
        setattr(_target, _name.upper(), _method)
del _name, _target, _factory, _method


def create_client(db: dict[str, t.Any] | None = None) -> RedisClient:
    """Create a client, optionally over shared storage."""
    return RedisClient(db=db)
