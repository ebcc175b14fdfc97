"""Ordered strategy chains with first-match-wins lookup.

:class:`StrategyChain` is the common base of
:class:`~oasforge.resolvers.registry.TypeResolverRegistry` and
:class:`~oasforge.introspectors.registry.IntrospectorRegistry`. A chain
holds strategy *instances*; lookup walks them in order and returns the
first whose ``handles(token)`` is true.

Registration rules:

* Registering a strategy that is already in the chain is a no-op. Passing
  a class registers a fresh instance of it, unless an instance of exactly
  that class is already present.
* ``first=True`` inserts at the head; ``before``/``after`` insert next to
  an existing strategy, named by instance, class, or ``name`` attribute.
  An unknown target appends instead.
* A plain ``register`` lands ahead of any trailing strategies flagged
  ``fallback = True``, so a total fallback keeps its place at the tail.

Chains are configured at startup and only read while builds run.
Registering into a chain that an in-flight build is using is not
supported.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from oasforge.exceptions import InvalidStrategyError

logger = logging.getLogger(__name__)


class StrategyChain:
    """Ordered list of strategy instances.

    Subclasses set :attr:`required_methods` to the methods every strategy
    must provide and :attr:`kind` to a human-readable label for errors.

    Args:
        strategies: Initial strategies, registered in order.
    """

    required_methods: tuple[str, ...] = ("handles",)
    kind: str = "strategy"

    def __init__(self, strategies: Optional[list[Any]] = None) -> None:
        self._chain: list[Any] = []
        for strategy in strategies or ():
            self.register(strategy)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        strategy: Any,
        *,
        before: Any = None,
        after: Any = None,
        first: bool = False,
    ) -> Any:
        """Add *strategy* to the chain.

        Args:
            strategy: A strategy instance, or a class to instantiate.
            before: Insert immediately before this strategy.
            after: Insert immediately after this strategy.
            first: Insert at the head of the chain.

        Returns:
            The registered instance (or the one already present).

        Raises:
            InvalidStrategyError: If the strategy lacks a required method.
        """
        if isinstance(strategy, type):
            existing = next((s for s in self._chain if type(s) is strategy), None)
            if existing is not None:
                return existing
            self._validate(strategy)
            strategy = strategy()
        else:
            self._validate(strategy)
            if any(s is strategy for s in self._chain):
                return strategy

        if first:
            index = 0
        elif before is not None:
            index = self._locate(before)
            if index is None:
                logger.debug("%s target %r not found, appending", self.kind, before)
                index = len(self._chain)
        elif after is not None:
            index = self._locate(after)
            index = len(self._chain) if index is None else index + 1
        else:
            index = self._fallback_boundary()

        self._chain.insert(index, strategy)
        logger.debug("Registered %s %s at position %d", self.kind, _label(strategy), index)
        return strategy

    def unregister(self, target: Any) -> bool:
        """Remove the strategy matching *target*.

        Returns:
            ``True`` if something was removed.
        """
        index = self._locate(target)
        if index is None:
            return False
        removed = self._chain.pop(index)
        logger.debug("Unregistered %s %s", self.kind, _label(removed))
        return True

    def clear(self) -> None:
        self._chain.clear()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find(self, token: Any) -> Optional[Any]:
        """Return the first strategy that handles *token*, or ``None``."""
        for strategy in self._chain:
            if strategy.handles(token):
                return strategy
        return None

    def handles(self, token: Any) -> bool:
        return self.find(token) is not None

    def names(self) -> list[str]:
        return [_label(s) for s in self._chain]

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._chain))

    def __len__(self) -> int:
        return len(self._chain)

    def __contains__(self, target: Any) -> bool:
        return self._locate(target) is not None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, strategy: Any) -> None:
        for method in self.required_methods:
            if not callable(getattr(strategy, method, None)):
                raise InvalidStrategyError(
                    f"{self.kind} {strategy!r} does not implement {method}()"
                )

    def _locate(self, target: Any) -> Optional[int]:
        for index, strategy in enumerate(self._chain):
            if strategy is target:
                return index
        for index, strategy in enumerate(self._chain):
            if isinstance(target, type) and type(strategy) is target:
                return index
            if isinstance(target, str) and _label(strategy) == target:
                return index
        return None

    def _fallback_boundary(self) -> int:
        index = len(self._chain)
        while index > 0 and getattr(self._chain[index - 1], "fallback", False):
            index -= 1
        return index


def _label(strategy: Any) -> str:
    return getattr(strategy, "name", None) or type(strategy).__name__
