from .hooks import HooksApiProvider

__all__ = ["HooksApiProvider"]
