"""First-chunk padding for progressive responses.

Several browsers hold back incremental rendering until a minimum number of
bytes has arrived. Padding the first chunk up to that threshold with an inert
HTML comment makes the page start painting as soon as it is flushed.

The table is ordered and the first matching rule wins. Chrome agents also
advertise ``Safari`` so the Chrome rule must precede the Safari one.

Example:
    >>> target = padding_target("Mozilla/5.0 (Windows; U; MSIE 9.0)")
    >>> target
    255
    >>> len(pad_chunk(b"a", target))
    255
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

_COMMENT_OPEN = b"<!--"
_COMMENT_CLOSE = b"-->"
_COMMENT_OVERHEAD = len(_COMMENT_OPEN) + len(_COMMENT_CLOSE)


@dataclass(frozen=True, slots=True)
class PaddingRule:
    """Pad the first chunk to ``target`` bytes when the User-Agent matches.

    Attributes:
        pattern: Regular expression searched for in the User-Agent header.
        target: Total size in bytes the padded first chunk should reach.
        family: Browser family name, used only in logs.
    """

    pattern: str
    target: int
    family: str = ""

    def matches(self, user_agent: str) -> bool:
        return re.search(self.pattern, user_agent) is not None


DEFAULT_PADDING_RULES: tuple[PaddingRule, ...] = (
    PaddingRule(r"MSIE", 255, "internet-explorer"),
    PaddingRule(r"Chrome/", 2048, "chrome"),
    PaddingRule(r"Safari/", 1024, "safari"),
)


def padding_target(
    user_agent: str | None,
    rules: Sequence[PaddingRule] = DEFAULT_PADDING_RULES,
) -> int:
    """Return the first-chunk size threshold for ``user_agent``.

    Unknown, empty or malformed agents get 0 (no padding); lookup never
    raises.
    """
    if not user_agent or not isinstance(user_agent, str):
        return 0
    for rule in rules:
        try:
            if rule.matches(user_agent):
                return rule.target
        except re.error:
            continue
    return 0


def pad_chunk(chunk: bytes, target: int, fill: bytes = b"+") -> bytes:
    """Append a padding comment so ``chunk`` is exactly ``target`` bytes.

    Returns ``chunk`` unchanged when it is empty or already large enough
    that no filler would fit.
    """
    count = target - len(chunk) - _COMMENT_OVERHEAD
    if not chunk or count <= 0:
        return chunk
    return chunk + _COMMENT_OPEN + fill * count + _COMMENT_CLOSE
