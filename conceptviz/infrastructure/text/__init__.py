"""Text processing adapters"""

from .chunker import ConceptAwareChunker, split_into_chunks

__all__ = ["ConceptAwareChunker", "split_into_chunks"]
