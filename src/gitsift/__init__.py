"""
gitsift: extract added lines and uncommitted content from git repositories
so a secret scanner can inspect them.
"""
from .models import Chunk, ProvenanceMetadata, ScanOptions, SourceType
from .version import __version__

__all__ = ["Chunk", "ProvenanceMetadata", "ScanOptions", "SourceType", "__version__"]
