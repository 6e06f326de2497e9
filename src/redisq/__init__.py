import structlog

from .adapter import jsonify as jsonify
from .adapter import qualify as qualify
from .api import adapt as adapt
from .api import plan_adaptation as plan_adaptation
from .api import redisq as redisq
from .codec import decode as decode
from .codec import encode as encode
from .discovery import CommandTable as CommandTable
from .discovery import collect_command_names as collect_command_names
from .exceptions import AdaptationError as AdaptationError
from .exceptions import CommandError as CommandError
from .exceptions import MissingCommandError as MissingCommandError
from .exceptions import RedisQError as RedisQError
from .logging import setup_logging as setup_logging
from .options import AdapterOptions as AdapterOptions

if not structlog.is_configured():
    setup_logging()

__all__ = [
    "redisq",
    "adapt",
    "plan_adaptation",
    "qualify",
    "jsonify",
    "encode",
    "decode",
    "collect_command_names",
    "CommandTable",
    "AdapterOptions",
    "RedisQError",
    "AdaptationError",
    "MissingCommandError",
    "CommandError",
    "setup_logging",
]
