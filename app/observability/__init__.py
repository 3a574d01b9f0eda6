"""Observability helpers for request tracing."""

from .dumper import Dumper, DumpHandles, DumpType, HeaderSanitizer

__all__ = ['DumpHandles', 'DumpType', 'Dumper', 'HeaderSanitizer']
