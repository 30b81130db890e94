"""Delimiter bookkeeping for completing truncated JSON text."""

from __future__ import annotations

from typing import Final

WHITESPACE: Final = " \t\n\r"

CLOSER_FOR: Final = {"{": "}", "[": "]"}
OPENER_FOR: Final = {"}": "{", "]": "["}


class DelimiterStack:
    """
    Positions of ``{`` and ``[`` still waiting for their closer.

    Filled while scanning one text outside of quoted strings and discarded
    once that text has been completed.
    """

    def __init__(self, text: str) -> None:
        self.text: Final = text
        self.positions: list[int] = []

    def __len__(self) -> int:
        return len(self.positions)

    def push(self, pos: int) -> None:
        self.positions.append(pos)

    def pop(self) -> int:
        """Removes and returns the innermost open position."""
        return self.positions.pop()

    def pop_matching(self, closer: str) -> bool:
        """
        Pops the innermost opener if ``closer`` closes it.

        Returns False, leaving the stack alone, when nothing is open or the
        innermost opener is of the other kind.
        """
        if not self.positions:
            return False
        if self.text[self.positions[-1]] != OPENER_FOR[closer]:
            return False
        self.positions.pop()
        return True

    def closers(self) -> str:
        """Closing delimiters for every open position, innermost first."""
        return "".join(
            CLOSER_FOR[self.text[pos]] for pos in reversed(self.positions)
        )


def close_truncated_object(head: str, closers: str) -> str:
    """
    Completes text whose innermost open object was cut before any member.

    ``head`` is the text before that object's ``{`` and ``closers`` closes
    every container around it. Directly inside an array the object is
    dropped the way the recursive parser drops it, so ``[1, {`` becomes
    ``[1]`` and ``[{`` becomes ``null``. Anywhere else it completes to
    ``{}``.
    """
    if not closers.startswith("]"):
        return head + "{}" + closers

    before = head.rstrip(WHITESPACE)
    if before.endswith("["):
        return before[:-1] + "null" + closers[1:]
    return before.removesuffix(",") + closers
