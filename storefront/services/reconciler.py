# storefront/services/reconciler.py

"""Resolve optimistic guesses against authoritative server values."""

import logging
from typing import TypeVar

logger = logging.getLogger("storefront.mutations")

T = TypeVar("T")


class OptimisticStateReconciler:
    """Last confirmed value wins.

    The local guess only bridges the gap between dispatch and the
    server's answer; once the server reports a value it replaces the
    guess outright, with no merging.
    """

    @staticmethod
    def resolve(local_guess: T, server_truth: T | None) -> T:
        """Return the value to render after a confirmed mutation."""
        if server_truth is None:
            return local_guess
        if server_truth != local_guess:
            logger.info(
                "Server value %r overrides optimistic guess %r",
                server_truth,
                local_guess,
            )
        return server_truth

    @staticmethod
    def rollback(snapshot: T) -> T:
        """Return the value to render after a failed mutation."""
        return snapshot
