"""Bits and bobs, like typing-related shims, internal sentinels, and the default diagnostics logger."""

import sys
from typing import TYPE_CHECKING, Any, Final, TextIO

__all__ = ("MISSING", "NullLogger", "StreamLogger", "override")


if sys.version_info >= (3, 12):  # pragma: >=3.12 cover
    from typing import override
elif TYPE_CHECKING:
    from typing_extensions import override
else:  # pragma: <3.12 cover

    def override(arg: object) -> Any:
        try:
            arg.__override__ = True
        except AttributeError:  # pragma: no cover
            pass
        return arg


class _Missing:
    __slots__ = ()

    @override
    def __repr__(self) -> str:
        return "<MISSING>"


MISSING: Final[Any] = _Missing()
"""Internal sentinel."""


class StreamLogger:
    """Stand-in for a logger from the logging module that writes plain lines to a text stream.

    Extended Summary
    ----------------
    Scanners and parsers use this by default for build warnings and lexing diagnostics. Anything with the same
    ``debug``/``info``/``warning``/``error`` methods, e.g. a ``logging.Logger``, can be assigned in its place.
    """

    def __init__(self, f: TextIO) -> None:
        self.f = f

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self.f.write((msg % args) + "\n")

    info = debug

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self.f.write("WARNING: " + (msg % args) + "\n")

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self.f.write("ERROR: " + (msg % args) + "\n")

    critical = error


class NullLogger:
    """Logger that discards everything."""

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        pass

    info = warning = error = critical = debug
