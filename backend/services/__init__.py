from .store import sessions

__all__ = ["sessions"]
