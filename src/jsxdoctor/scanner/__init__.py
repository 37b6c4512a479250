from .sources import SourceScanner

__all__ = ["SourceScanner"]
