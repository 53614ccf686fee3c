"""Requirement registry.

Maps requirement keywords to the handlers that check them. Built-in keywords
are registered by :func:`default_registry`; extra in-process checks can be
added with :meth:`RequirementRegistry.register`, either directly or as a
decorator::

    registry = default_registry(freeze=False)

    @registry.register("PORT-FREE")
    def port_free(evaluator, requirement, ctx):
        ...

Keywords that are not registered fall through to the external check loader.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from loguru import logger

from .errors import DuplicateRequirementError, RegistryFrozenError
from .model import CheckResult, Requirement

if TYPE_CHECKING:
    from .evaluator import EvalContext, Evaluator

Handler = Callable[["Evaluator", Requirement, "EvalContext"], CheckResult]


class RequirementRegistry:
    """Keyword to handler table.

    Registering the same keyword twice raises DuplicateRequirementError.
    Once frozen, the registry rejects further registration.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._frozen = False

    def register(
        self,
        keyword: str,
        handler: Handler | None = None,
    ) -> Handler | Callable[[Handler], Handler]:
        def _add(fn: Handler) -> Handler:
            if self._frozen:
                raise RegistryFrozenError(f"Registry is frozen; cannot register {keyword}")
            if keyword in self._handlers:
                raise DuplicateRequirementError(keyword)
            self._handlers[keyword] = fn
            logger.debug(f"Registered requirement {keyword}")
            return fn

        if handler is not None:
            return _add(handler)
        return _add

    def get(self, keyword: str) -> Handler | None:
        return self._handlers.get(keyword)

    def freeze(self) -> RequirementRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def keywords(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, keyword: object) -> bool:
        return keyword in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.keywords())

    def __len__(self) -> int:
        return len(self._handlers)


def default_registry(*, freeze: bool = True) -> RequirementRegistry:
    from .checks import BUILTIN_CHECKS

    registry = RequirementRegistry()
    for keyword, handler in BUILTIN_CHECKS.items():
        registry.register(keyword.value, handler)
    if freeze:
        registry.freeze()
    return registry
