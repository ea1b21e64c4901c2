# main.py

import sys
from src.infrastructure.document_loader import DocumentLoader
from src.infrastructure.embedding_engine import SentenceTransformerBackend
from src.application.embedding_index import EmbeddingIndex
from src.application.document_library import DocumentLibrary
from src.domain.errors import InitializationError
from src.interface.cli import (
    display_welcome_banner,
    display_indexing_status,
    prompt_for_query,
    display_results,
    display_error,
    ask_continue,
)


DATA_DIRECTORY = "data"
SIMILARITY_THRESHOLD = 0.5
RESULT_LIMIT = 5


def main() -> None:
    display_welcome_banner()

    # ── 1. Wire the index (model loads lazily) ───────────────────────────────
    index = EmbeddingIndex(backend=SentenceTransformerBackend())
    library = DocumentLibrary(index)

    try:
        index.initialize()
    except InitializationError as error:
        display_error(str(error))
        sys.exit(1)

    # ── 2. Index the data directory ──────────────────────────────────────────
    loader = DocumentLoader()
    try:
        documents = loader.load_directory(DATA_DIRECTORY)
    except FileNotFoundError as error:
        display_error(str(error))
        sys.exit(1)

    if not documents:
        display_error(f"No supported documents found in '{DATA_DIRECTORY}/'.")
        sys.exit(1)

    library.add_documents(documents)
    display_indexing_status(len(library), library.total_word_count(), index.device)

    # ── 3. Interactive search loop ────────────────────────────────────────────
    while True:
        query = prompt_for_query()
        try:
            results = library.search(
                query,
                threshold=SIMILARITY_THRESHOLD,
                limit=RESULT_LIMIT,
            )
            display_results(query, results)
        except ValueError as error:
            display_error(str(error))

        if not ask_continue():
            break


if __name__ == "__main__":
    main()
