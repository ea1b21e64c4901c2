import asyncio
from typing import List, Optional

from fastapi import FastAPI, HTTPException, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from src.application.document_library import DocumentLibrary
from src.application.embedding_index import EmbeddingIndex
from src.domain.errors import ConfigurationError, DimensionMismatchError, EmbeddingError
from src.domain.models import Document
from src.infrastructure.document_loader import DocumentLoader, SUPPORTED_EXTENSIONS
from src.infrastructure.embedding_engine import SentenceTransformerBackend
from src.infrastructure.similarity import DEFAULT_LIMIT, DEFAULT_THRESHOLD
from src.infrastructure.text_processing import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE

# ── Configuration ────────────────────────────────────────────────────────────
ALLOWED_ORIGINS = ["http://localhost:5173", "http://localhost:8080", "http://127.0.0.1:8080"]
PREVIEW_CHARS = 200

# ── API Models ───────────────────────────────────────────────────────────────
class SearchRequest(BaseModel):
    query: str
    threshold: float = DEFAULT_THRESHOLD
    limit: int = DEFAULT_LIMIT

class ChunkRequest(BaseModel):
    text: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    overlap: int = DEFAULT_CHUNK_OVERLAP

class SearchResponse(BaseModel):
    query: str
    results: List[dict] # Simplified for direct JSON response


def _serialize_document(document: Document) -> dict:
    return {
        "id": document.id,
        "title": document.title,
        "preview": document.content[:PREVIEW_CHARS],
        "embedding_dimensions": len(document.embedding),
        "metadata": {
            "source": document.metadata.source,
            "uploaded_at": document.metadata.uploaded_at.isoformat(),
            "word_count": document.metadata.word_count,
        },
    }


def create_app(library: Optional[DocumentLibrary] = None) -> FastAPI:
    """Build the API around a library; the default one loads its model on first use."""
    if library is None:
        library = DocumentLibrary(EmbeddingIndex(backend=SentenceTransformerBackend()))
    index = library.index
    loader = DocumentLoader()

    app = FastAPI(
        title="Document Research API",
        description="Local embeddings and similarity search over uploaded documents.",
        version="1.0.0"
    )

    # ── CORS Middleware ──────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EmbeddingError)
    async def embedding_error_handler(request, error: EmbeddingError):
        print(f"[API] Embedding failed on {request.url.path}: {error}")
        return JSONResponse(status_code=503, content={"detail": str(error)})

    # ── Endpoints ────────────────────────────────────────────────────────────
    @app.get("/")
    def read_root():
        return {
            "message": "Document Research API is running.",
            "status": "ready" if index.is_initialized else "model_not_loaded",
            "documents_indexed": len(library),
        }

    @app.get("/status")
    def get_status():
        """Returns the embedding model state and corpus statistics."""
        return {
            "model_loaded": index.is_initialized,
            "device": index.device,
            "embedding_model": index.model_name,
            "embedding_dimensions": index.dimension,
            "documents_indexed": len(library),
            "total_words": library.total_word_count(),
        }

    @app.get("/documents")
    def get_documents():
        """Returns the indexed documents, newest last."""
        return {"documents": [_serialize_document(d) for d in library.documents]}

    @app.post("/upload")
    async def upload_files(files: List[UploadFile] = File(...)):
        """Upload TXT/MD/JSON files and embed them."""
        rejected = [f.filename for f in files if not loader.is_supported(f.filename or "")]
        if rejected:
            raise HTTPException(
                status_code=415,
                detail=f"Unsupported file type(s): {rejected}. "
                       f"Allowed: {sorted(SUPPORTED_EXTENSIONS)}",
            )

        added = []
        for file in files:
            content = loader.decode(await file.read())
            # Embedding is CPU/GPU bound, run it off the event loop
            document = await asyncio.to_thread(library.add_document, file.filename, content)
            added.append(_serialize_document(document))

        return {
            "message": f"Added {len(added)} document(s) with local embeddings.",
            "documents": added,
        }

    @app.delete("/documents/{document_id}")
    def delete_document(document_id: str):
        """Delete a document and its embedding."""
        try:
            document = library.delete_document(document_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Document not found")
        return {"message": f"Successfully deleted document '{document.title}'"}

    @app.post("/documents/regenerate")
    def regenerate_embeddings():
        """Re-embed every document with the current model."""
        count = library.regenerate_embeddings()
        return {"message": f"Updated embeddings for {count} document(s).", "updated": count}

    @app.post("/search", response_model=SearchResponse)
    def search(request: SearchRequest):
        try:
            results = library.search(
                request.query,
                threshold=request.threshold,
                limit=request.limit,
            )
        except DimensionMismatchError as e:
            raise HTTPException(
                status_code=409,
                detail=f"{e}. Regenerate embeddings so the corpus shares one model.",
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        # Map domain models to JSON-serializable dicts
        serializable_results = [
            {
                "document": _serialize_document(r.document),
                "similarity": round(float(r.similarity), 4),
            }
            for r in results
        ]

        return SearchResponse(
            query=request.query,
            results=serializable_results
        )

    @app.post("/chunk")
    def chunk(request: ChunkRequest):
        """Split text into overlapping word windows."""
        try:
            chunks = index.chunk_text(request.text, request.chunk_size, request.overlap)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"chunks": chunks, "count": len(chunks)}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
