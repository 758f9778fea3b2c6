"""Content fingerprints for Autentica results."""
import hashlib
import os
from typing import Union

CHUNK_SIZE = 1 << 16


class CryptoUtils:
    """Utility class for content hashing."""

    @staticmethod
    def hash_content(content: bytes) -> str:
        """Generate SHA-256 hash of content."""
        return hashlib.sha256(content).hexdigest()

    @staticmethod
    def hash_file(path: Union[str, os.PathLike]) -> str:
        """SHA-256 of a file, read in chunks."""
        digest = hashlib.sha256()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(chunk)
        return digest.hexdigest()
