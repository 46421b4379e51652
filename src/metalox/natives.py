"""Host natives seeded into the global scope."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from .runtime import NativeFunction

if TYPE_CHECKING:
    from .interpreter import Interpreter


def _clock(interpreter: Interpreter, args: list[object]) -> object:
    return time.time()


DEFAULT_NATIVES: dict[str, NativeFunction] = {
    "clock": NativeFunction("clock", 0, _clock),
}
