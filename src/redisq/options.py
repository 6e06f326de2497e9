"""
Adaptation options.
"""

import typing as t

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_SUFFIX = "Q"

Mapper = t.Callable[[str], str]


class AdapterOptions(BaseModel):
    """
    Naming and codec options for one adaptation pass.

    ``json`` is accepted as an alias of ``use_json``. An empty ``suffix``
    falls back to ``DEFAULT_SUFFIX``. A custom ``mapper`` overrides
    ``prefix`` and ``suffix`` entirely.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    prefix: str = ""
    suffix: str = DEFAULT_SUFFIX
    mapper: Mapper | None = None
    use_json: bool = Field(default=False, validation_alias=AliasChoices("json", "use_json"))

    def name_for(self, name: str) -> str:
        """Return the adapted method name for ``name``."""
        if self.mapper is not None:
            return self.mapper(name)
        return f"{self.prefix}{name}{self.suffix or DEFAULT_SUFFIX}"
