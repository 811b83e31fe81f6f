"""
TopicPublisher protocol — observer side of the changed-topics contract.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class TopicPublisher(Protocol):
    """
    Receives the topics touched by a successful mutation.

    publish() is called inside the caller's transaction; implementations
    defer their work until commit (transaction.on_commit) and must not
    raise into the caller.
    """

    def publish(self, topics: Iterable[str]) -> None:
        ...
