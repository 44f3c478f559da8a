"""Utility modules for solverhub."""

from solverhub.utils.locks import AsyncRWLock, LockTimeoutError

__all__ = ["AsyncRWLock", "LockTimeoutError"]
