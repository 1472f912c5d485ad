"""Module registry — the set of knowledge modules the engine can route to."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

from cognition.modules.base import KnowledgeModule, ModuleResponse

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from cognition.context.models import ContextSnapshot

    ModuleHandler = Callable[[str, ContextSnapshot | None], Awaitable[ModuleResponse]]

logger = logging.getLogger(__name__)


class FunctionModule:
    """Adapts a bare async function to the KnowledgeModule protocol."""

    def __init__(self, name: str, handler: ModuleHandler, *, initialized: bool = True) -> None:
        self._name = name
        self._handler = handler
        self.initialized = initialized

    @property
    def name(self) -> str:
        return self._name

    async def process(self, text: str, context: ContextSnapshot | None) -> ModuleResponse:
        return await self._handler(text, context)


class ModuleRegistry:
    """Catalog of knowledge modules, keyed by name.

    Supports two registration styles:

    1. Decorator (for stateless handlers)::

        @registry.module(name="echo")
        async def echo(text, context) -> ModuleResponse:
            return ModuleResponse(source="echo", success=True, confidence=0.5, data=text)

    2. Instance (for modules that carry state)::

        registry.register(MathematicsModule())

    The registry does not own module lifecycle; modules arrive already built.
    """

    def __init__(self, modules: Iterable[KnowledgeModule] = ()) -> None:
        self._modules: dict[str, KnowledgeModule] = {}
        for module in modules:
            self.register(module)

    def register(self, module: KnowledgeModule) -> None:
        """Register a module instance. Raises on duplicates or a sync ``process``."""
        if not isinstance(module, KnowledgeModule):
            msg = f"{module!r} does not implement the KnowledgeModule protocol"
            raise TypeError(msg)
        if not inspect.iscoroutinefunction(module.process):
            msg = f"Module '{module.name}' must define an async process()"
            raise TypeError(msg)
        if module.name in self._modules:
            msg = f"Module '{module.name}' is already registered"
            raise ValueError(msg)
        self._modules[module.name] = module
        logger.info("Registered module: %s", module.name)

    def module(self, *, name: str, initialized: bool = True) -> Callable:
        """Decorator to register an async function as a module."""

        def decorator(fn: ModuleHandler) -> ModuleHandler:
            if not inspect.iscoroutinefunction(fn):
                msg = f"Module handler '{name}' must be an async function"
                raise TypeError(msg)
            self.register(FunctionModule(name, fn, initialized=initialized))
            return fn

        return decorator

    def get(self, name: str) -> KnowledgeModule | None:
        """Look up a module by name."""
        return self._modules.get(name)

    @property
    def names(self) -> list[str]:
        """All registered module names."""
        return list(self._modules.keys())

    def initialized_modules(self) -> list[KnowledgeModule]:
        """Modules that report themselves ready."""
        return [m for m in self._modules.values() if m.initialized]

    def resolve(self, names: Iterable[str]) -> list[KnowledgeModule]:
        """Initialized modules matching *names*, in the order given. Unknown names are skipped."""
        resolved: list[KnowledgeModule] = []
        for name in names:
            module = self._modules.get(name)
            if module is not None and module.initialized and module not in resolved:
                resolved.append(module)
        return resolved

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules
