from thought_history.backend.base import (
    ArchiveFormat,
    RepositoryBackend,
    RepositoryStatus,
)
from thought_history.backend.git import GitBackend
from thought_history.backend.memory import InMemoryBackend

__all__ = [
    "ArchiveFormat",
    "GitBackend",
    "InMemoryBackend",
    "RepositoryBackend",
    "RepositoryStatus",
]
