# src/infrastructure/document_loader.py

from typing import List, Tuple
from pathlib import Path


SUPPORTED_EXTENSIONS = {".txt", ".md", ".json"}


class DocumentLoader:
    """
    Reads plain-text documents from disk as (title, content) pairs.
    JSON files are indexed as raw text, the way they were uploaded.
    """

    def __init__(self, extensions: set[str] = SUPPORTED_EXTENSIONS):
        self._extensions = {ext.lower() for ext in extensions}

    def is_supported(self, filename: str) -> bool:
        return Path(filename).suffix.lower() in self._extensions

    def load_directory(self, directory_path: str) -> List[Tuple[str, str]]:
        data_dir = Path(directory_path)
        if not data_dir.exists():
            raise FileNotFoundError(f"Data directory not found: {directory_path}")

        documents: List[Tuple[str, str]] = []
        for file_path in sorted(data_dir.rglob("*")):
            if not file_path.is_file() or not self.is_supported(file_path.name):
                continue
            documents.append((file_path.name, self.load_file(file_path)))
            print(f"[DocumentLoader] Loaded {file_path.name}")

        print(f"[DocumentLoader] Total documents loaded: {len(documents)}")
        return documents

    def load_file(self, file_path: Path) -> str:
        return Path(file_path).read_text(encoding="utf-8", errors="ignore")

    @staticmethod
    def decode(raw: bytes) -> str:
        """Decode uploaded bytes the same way files on disk are read."""
        return raw.decode("utf-8", errors="ignore")
