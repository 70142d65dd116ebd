# ==============================================================================
# HANDLER REGISTRY MODULE
# ==============================================================================
# Maps an object kind to the function that extracts it.
#
# The registry is filled once, before any bundle is processed, and only read
# afterwards, so workers can share one instance without locking.
#
# To support a new kind:
#   1. Write handle_<kind>(obj, ctx, options) in handlers.py
#   2. Add it to the HANDLERS table
#
# Usage:
#   registry = HandlerRegistry.from_table(HANDLERS)
#   if not registry.try_extract(obj, ctx, options):
#       pass  # unknown kinds are skipped
# ==============================================================================

from typing import Dict, List, Mapping, Optional

from .context import ExtractOptions, HandlingContext, NO_OVERRIDES
from .handlers import HANDLERS, Handler


# Base classes of the Unity object model; no object has one of these as
# its concrete kind
ABSTRACT_KINDS = frozenset({
    "Object",
    "NamedObject",
    "EditorExtension",
    "Component",
    "Behaviour",
})


class HandlerRegistry:
    """
    Registry of asset handlers keyed by exact object kind.

    Usage:
        registry = HandlerRegistry()
        registry.register("Texture2D", handle_texture2d)
        registry.try_extract(obj, ctx)
    """

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}

    @classmethod
    def from_table(cls, table: Mapping[str, Handler]) -> "HandlerRegistry":
        """Build a registry from a kind -> handler table."""
        registry = cls()
        for kind, handler in table.items():
            registry.register(kind, handler)
        return registry

    def register(self, kind: str, handler: Handler):
        """
        Register the handler of a concrete kind.

        Args:
            kind: Unity class name (e.g., "Texture2D")
            handler: Function taking (obj, ctx, options)

        Raises:
            ValueError: If kind is one of the abstract base kinds
        """
        if kind in ABSTRACT_KINDS:
            raise ValueError(f"Cannot register a handler for abstract kind {kind}")
        self._handlers[kind] = handler
        print(f"[INFO] Add asset handler for: {kind}")

    def kinds(self) -> List[str]:
        """Get all kinds that have a handler."""
        return list(self._handlers)

    def try_extract(self, obj, ctx: HandlingContext, options: ExtractOptions = NO_OVERRIDES) -> bool:
        """
        Extract an object if its kind has a handler.

        Returns:
            True if a handler ran, False if the kind is unhandled
        """
        handler = self._handlers.get(obj.kind)
        if handler is None:
            return False
        handler(obj, ctx, options)
        return True


_default_registry: Optional[HandlerRegistry] = None


def get_registry() -> HandlerRegistry:
    """
    Get the process-wide registry built from HANDLERS.

    Call once at startup, before starting any workers.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = HandlerRegistry.from_table(HANDLERS)

    return _default_registry
