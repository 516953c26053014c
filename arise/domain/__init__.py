"""Domain layer: immutable state and content value objects."""
