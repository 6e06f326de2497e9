"""
Best-effort JSON codec between structured values and their wire strings.

Strings are assumed to be wire-ready and are never JSON-quoted. Anything that
fails to serialize or parse is passed through untouched, so a caller cannot
tell plain text apart from a value that failed to parse.
"""

import json
import typing as t
from dataclasses import dataclass

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Decoded:
    """
    Outcome of a single decode attempt.

    Attributes
    ----------
    value : typing.Any
        Decoded value, or the original input when ``decoded`` is ``False``.
    decoded : bool
        Whether JSON parsing succeeded.
    """

    value: t.Any
    decoded: bool


def _encode_one(value: t.Any) -> t.Any:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError, RecursionError):
        return value


def encode(values: t.Iterable[t.Any]) -> list[t.Any]:
    """
    Encode call arguments for the wire.

    Parameters
    ----------
    values : typing.Iterable[typing.Any]
        Positional call arguments.

    Returns
    -------
    list[typing.Any]
        Arguments in the same order: strings unchanged, everything else as
        JSON text, or the original value when it cannot be serialized.
    """
    values = list(values)
    result = [_encode_one(value) for value in values]
    log.debug("encode", values=values, result=result)
    return result


def try_decode(value: t.Any) -> Decoded:
    """
    Decode a reply, reporting whether parsing actually happened.

    Lists and tuples are decoded element by element into a new list and are
    reported as decoded unless they nest too deeply to walk.
    """
    try:
        if isinstance(value, (list, tuple)):
            return Decoded(value=[decode(item) for item in value], decoded=True)
        return Decoded(value=json.loads(value), decoded=True)
    except (TypeError, ValueError, RecursionError):
        return Decoded(value=value, decoded=False)


def decode(value: t.Any) -> t.Any:
    """
    Decode a reply from the wire.

    Parameters
    ----------
    value : typing.Any
        A scalar reply or an ordered sequence of replies (batch results).

    Returns
    -------
    typing.Any
        The decoded value, or ``value`` itself when it is not valid JSON.
    """
    result = try_decode(value).value
    log.debug("decode", value=value, result=result)
    return result
