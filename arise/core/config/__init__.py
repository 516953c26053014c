"""
Arise configuration package.

Static environment-driven configuration. Game balance lives in the content
registry (arise.core.content), not here.
"""

from arise.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
