from . import convert, health, sessions

__all__ = ["convert", "health", "sessions"]
