"""Reference storage backends for generated schemas."""
from .base import Backend, back_reference
from .memory import MemoryBackend
from .sql import SQLBackend

__all__ = ['Backend', 'back_reference', 'MemoryBackend', 'SQLBackend']
