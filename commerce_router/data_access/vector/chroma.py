from __future__ import annotations

from pathlib import Path
from typing import Any

import chromadb
from langchain_chroma import Chroma
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings


def create_chroma_store(
    persist_directory: str | Path,
    collection_name: str = "editorial",
    embedding_function: Embeddings | None = None,
) -> Chroma:
    """Open (or create) a persisted Chroma collection of editorial articles and tips."""
    path = Path(persist_directory)
    path.mkdir(parents=True, exist_ok=True)
    client = chromadb.PersistentClient(path=str(path))
    return Chroma(
        client=client,
        collection_name=collection_name,
        embedding_function=embedding_function or OpenAIEmbeddings(),
    )


def create_chroma_retriever(
    persist_directory: str | Path,
    collection_name: str = "editorial",
    embedding_function: Embeddings | None = None,
    k: int = 5,
) -> Any:
    """LangChain retriever over a local editorial collection, used by the search_docs tool."""
    store = create_chroma_store(persist_directory, collection_name, embedding_function)
    return store.as_retriever(search_kwargs={"k": k})
