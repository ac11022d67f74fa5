"""Data types shared by the timed key store.

Includes the stored Entry record, the Symbol key type used for opaque
identities, and the key validation helpers applied at every key-taking
operation of the store.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Union

from timemap.core.errors import InvalidKeyTypeError


EXPIRATION = "expiration"


class Symbol:
    """Opaque key compared by identity, like a named sentinel.

    Two symbols created with the same description are distinct keys.
    """

    __slots__ = ("_description",)

    def __init__(self, description: Optional[str] = None) -> None:
        self._description = description

    @property
    def description(self) -> Optional[str]:
        return self._description

    def __repr__(self) -> str:
        if self._description is None:
            return "Symbol()"
        return f"Symbol({self._description!r})"


Key = Union[str, int, Symbol, enum.Enum]


@dataclass(slots=True)
class Entry:
    # Stored value + monotonic time of the last insert or refresh
    value: Any
    last_touched: float  # time.monotonic()


def is_valid_key(key: object) -> bool:
    # bool is an int subclass but True/1 would collide as dict keys
    if isinstance(key, bool):
        return False
    return isinstance(key, (str, int, Symbol, enum.Enum))


def assert_key(key: object) -> None:
    if not is_valid_key(key):
        raise InvalidKeyTypeError(
            f"key must be a str, an int or a symbol, got {type(key).__name__}"
        )
