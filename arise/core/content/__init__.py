"""Static content loading (YAML tables under arise/content)."""

from arise.core.content.registry import ContentRegistry, default_registry

__all__ = ["ContentRegistry", "default_registry"]
