from ._console import ConsoleDisplay

__all__ = [
    ConsoleDisplay.__name__,
]
