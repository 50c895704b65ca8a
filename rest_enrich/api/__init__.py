"""HTTP transport."""

from .http_executor import HttpExecutor

__all__ = ["HttpExecutor"]
