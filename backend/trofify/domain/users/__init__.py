"""User directory exports."""

from .repo import InMemoryUserDirectory, PostgresUserDirectory, UserDirectory

__all__ = ["InMemoryUserDirectory", "PostgresUserDirectory", "UserDirectory"]
