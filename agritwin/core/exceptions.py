"""Exceptions raised by the simulation engine."""

from __future__ import annotations

from typing import Iterable


class UnknownTypeError(KeyError):
    """
    Lookup of a crop, soil or region key that is not in the knowledge base.

    Parameters
    ----------
    kind : str
        Table being searched (``"crop"``, ``"soil"``, ``"region"``).
    key : object
        The offending key.
    known : iterable of str
        Valid keys for that table, listed in the message.
    """

    def __init__(self, kind: str, key: object, known: Iterable[str]):
        self.kind = kind
        self.key = key
        self.known = tuple(sorted(known))
        super().__init__(
            f"Unknown {kind} type {key!r}. Known: {list(self.known)}"
        )

    def __str__(self) -> str:
        return str(self.args[0])
