"""Query-template encoding.

Substitutes each ``?`` in a template, left to right, with the next argument
rendered as a double-quoted, driver-escaped literal. A list or tuple argument
expands to a comma-separated list of such literals, which is what ``IN (?)``
clauses need::

    encode("update Users set Active=? where ID in (?)", [1, [2, 5, 9]], escape)
    # -> 'update Users set Active="1" where ID in ("2","5","9")'

Nothing here touches a connection; the escaper is passed in.
"""

import re
from itertools import count
from typing import Any, Callable, Optional, Sequence

from plainsql.errors import EncodingError

PLACEHOLDER = "?"
_PLACEHOLDER_PATTERN = re.compile(re.escape(PLACEHOLDER))

# Driver string escaper, e.g. pymysql's Connection.escape_string
Escaper = Callable[[str], str]


def is_sequence_argument(value: Any) -> bool:
    """Lists and tuples expand; str/bytes are scalars."""
    return isinstance(value, (list, tuple))


def quote(value: Any, escape: Escaper) -> str:
    """Render one scalar as an SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, (bytes, bytearray)):
        return "X'" + bytes(value).hex() + "'"
    return '"' + escape(str(value)) + '"'


def quote_list(values: Sequence[Any], escape: Escaper) -> str:
    return ",".join(quote(v, escape) for v in values)


def encode(template: str, args: Optional[Sequence[Any]], escape: Escaper) -> str:
    """Resolve a query template against its positional arguments.

    Args:
        template: SQL text with ``?`` placeholders
        args: One entry per placeholder; None or empty leaves the template as is
        escape: Driver escaper applied to every rendered scalar

    Returns:
        The resolved query string

    Raises:
        EncodingError: A placeholder has no argument, or arguments remain
            after the last placeholder
    """
    if not args:
        return template

    arg_iter = iter(args)
    counter = count(1)

    def repl(match: re.Match) -> str:
        position = next(counter)
        try:
            value = next(arg_iter)
        except StopIteration:
            raise EncodingError(
                f"no argument for placeholder {position} at offset {match.start()}",
                template,
            ) from None
        if is_sequence_argument(value):
            return quote_list(value, escape)
        return quote(value, escape)

    resolved = _PLACEHOLDER_PATTERN.sub(repl, template)

    leftover = sum(1 for _ in arg_iter)
    if leftover:
        raise EncodingError(
            f"{leftover} argument(s) left over after the last placeholder",
            template,
        )
    return resolved


__all__ = [
    "PLACEHOLDER",
    "Escaper",
    "encode",
    "quote",
    "quote_list",
    "is_sequence_argument",
]
