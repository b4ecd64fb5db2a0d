"""CLI entry point: Typer app for docbot commands.

Usage:
    docbot ingest handbook.txt --chatbot bot1 --chunk-size 800 --overlap 100
    docbot query "How do I reset my password?" --chatbot bot1
    docbot delete-document <document-id>
    docbot stats --chatbot bot1
    docbot status
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from docbot import __version__
from docbot.config import Settings, load_settings

app = typer.Typer(
    name="docbot",
    help="Document-grounded chatbot knowledge: ingest, query, delete.",
    no_args_is_help=True,
)

console = Console()

_INGEST_PATH = typer.Argument(..., help="Plain-text file to ingest")
_CHATBOT = typer.Option(..., "--chatbot", "-c", help="Chatbot id")


def _settings() -> Settings:
    settings = load_settings()
    logging.basicConfig(
        level=settings.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def _open_knowledge_base(settings: Settings):
    from docbot.knowledge import KnowledgeBase
    from docbot.store.factory import chunk_store_from_settings
    from docbot.vectorstore.factory import vector_index_from_settings

    return KnowledgeBase(
        chunk_store=chunk_store_from_settings(settings.chunkstore),
        vector_index=vector_index_from_settings(
            settings.vectorstore, dimension=settings.embedding.dimension,
        ),
    )


def _embedding_provider(settings: Settings):
    from docbot.embeddings.factory import embedding_provider_from_settings

    return embedding_provider_from_settings(settings.embedding)


@app.command()
def ingest(
    path: Annotated[Path, _INGEST_PATH],
    chatbot: str = _CHATBOT,
    chunk_size: int | None = typer.Option(
        None, "--chunk-size", help="Window size (defaults to settings)",
    ),
    overlap: int | None = typer.Option(
        None, "--overlap", help="Overlap between windows (defaults to settings)",
    ),
) -> None:
    """Ingest a plain-text document into a chatbot's knowledge."""
    from docbot.chunking.schemas import ChunkConfig
    from docbot.errors import InvalidChunkConfig
    from docbot.pipeline.ingest import IngestPipeline

    settings = _settings()
    config = ChunkConfig(
        chunk_size=chunk_size if chunk_size is not None else settings.chunking.chunk_size,
        overlap_size=overlap if overlap is not None else settings.chunking.overlap_size,
    )

    kb = _open_knowledge_base(settings)
    pipeline = IngestPipeline(
        embedding_provider=_embedding_provider(settings),
        knowledge_base=kb,
        unit=settings.chunking.unit,
    )

    try:
        result = pipeline.ingest_text(
            chatbot,
            path.read_text(encoding="utf-8"),
            filename=path.name,
            chunk_config=config,
        )
    except InvalidChunkConfig as exc:
        console.print(f"[bold red]Invalid chunk config:[/] {exc}")
        raise typer.Exit(code=2) from exc
    finally:
        kb.vector_index.save(settings.vectorstore.path)
        kb.chunk_store.close()

    console.print(f"\n[bold green]Ingested:[/] {path.name} ({result.document_id})")
    console.print(f"  Chunks: {result.chunk_count}")
    if result.failed_count:
        console.print(
            f"  [yellow]Partially ingested:[/] {result.failed_count} chunks failed",
        )
    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


@app.command()
def query(
    question: str = typer.Argument(..., help="Question to ask"),
    chatbot: str = _CHATBOT,
    top_k: int | None = typer.Option(
        None, "--top-k", "-k", help="Number of context chunks",
    ),
    answer: bool = typer.Option(
        False, "--answer", "-a", help="Also generate an answer with the LLM",
    ),
) -> None:
    """Show the chunks retrieved for a question (optionally answer it)."""
    from docbot.retrieval.retriever import Retriever
    from docbot.retrieval.schemas import RetrievalConfig

    settings = _settings()
    kb = _open_knowledge_base(settings)
    retriever = Retriever(
        embedding_provider=_embedding_provider(settings),
        knowledge_base=kb,
        config=RetrievalConfig(
            top_k=settings.retrieval.top_k,
            min_score=settings.retrieval.similarity_threshold,
        ),
    )

    try:
        if answer:
            from docbot.llm.factory import llm_provider_from_settings
            from docbot.pipeline.chat import ChatPipeline

            llm = llm_provider_from_settings(settings.llm)
            response = ChatPipeline(retriever, llm).answer(chatbot, question, top_k=top_k)
            console.print(f"\n[bold]Q:[/] {question}")
            console.print(f"\n[bold green]A:[/] {response.answer}")
            if response.sources:
                console.print("\n[bold]Sources:[/]")
                for s in response.sources:
                    console.print(f"  - {s.filename} ({s.similarity:.3f}): {s.text}")
            return

        chunks = retriever.retrieve(chatbot, question, top_k=top_k)
    finally:
        kb.chunk_store.close()

    if not chunks:
        console.print("[yellow]No relevant chunks found.[/]")
        return

    table = Table(title=f"Top {len(chunks)} chunks")
    table.add_column("#", style="cyan")
    table.add_column("Similarity")
    table.add_column("Source")
    table.add_column("Text")
    for i, c in enumerate(chunks, 1):
        table.add_row(str(i), f"{c.similarity:.4f}", c.filename, c.text[:80])
    console.print(table)


@app.command("delete-document")
def delete_document(
    document_id: str = typer.Argument(..., help="Document id"),
) -> None:
    """Delete a document with its chunks and embeddings."""
    from docbot.errors import NotFound

    settings = _settings()
    kb = _open_knowledge_base(settings)
    try:
        try:
            kb.require_document(document_id)
        except NotFound as exc:
            console.print(f"[bold red]{exc}[/]")
            raise typer.Exit(code=1) from exc
        removed = kb.delete_document(document_id)
        kb.vector_index.save(settings.vectorstore.path)
    finally:
        kb.chunk_store.close()
    console.print(f"[bold green]Deleted[/] {document_id} ({removed} chunks)")


@app.command("delete-chatbot")
def delete_chatbot(
    chatbot_id: str = typer.Argument(..., help="Chatbot id"),
) -> None:
    """Delete every document, chunk and embedding of a chatbot."""
    settings = _settings()
    kb = _open_knowledge_base(settings)
    try:
        removed = kb.delete_chatbot(chatbot_id)
        kb.vector_index.save(settings.vectorstore.path)
    finally:
        kb.chunk_store.close()
    console.print(f"[bold green]Deleted chatbot[/] {chatbot_id} ({removed} chunks)")


@app.command()
def stats(chatbot: str = _CHATBOT) -> None:
    """Show document and chunk counts for a chatbot."""
    settings = _settings()
    kb = _open_knowledge_base(settings)
    try:
        s = kb.stats(chatbot)
        documents = kb.chunk_store.list_documents(chatbot)
    finally:
        kb.chunk_store.close()

    console.print(f"\n[bold]{chatbot}[/]")
    console.print(f"  Documents: {s.document_count}")
    console.print(f"  Knowledge chunks: {s.chunk_count}")
    console.print(f"  Vector embeddings: {s.indexed_count}")

    if documents:
        table = Table(title="Documents")
        table.add_column("ID", style="cyan")
        table.add_column("Source")
        table.add_column("Type")
        table.add_column("Uploaded")
        for d in documents:
            table.add_row(
                d.id, d.display_name, d.source_type.value, d.uploaded_at.isoformat(),
            )
        console.print(table)


@app.command()
def status() -> None:
    """Show installed components and the active configuration."""
    from docbot.chunking.factory import available_chunkers
    from docbot.embeddings.factory import available_providers as emb_providers
    from docbot.llm.factory import available_providers as llm_providers
    from docbot.store.factory import available_chunk_stores
    from docbot.vectorstore.factory import available_indexes

    settings = load_settings()
    console.print(f"\n[bold green]docbot-retrieval[/] v{__version__}\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_column("Configured")

    table.add_row("Chunking units", ", ".join(available_chunkers()), settings.chunking.unit)
    table.add_row(
        "Embedding providers", ", ".join(emb_providers()), settings.embedding.provider,
    )
    table.add_row(
        "Vector indexes", ", ".join(available_indexes()), settings.vectorstore.backend,
    )
    table.add_row(
        "Chunk stores", ", ".join(available_chunk_stores()), settings.chunkstore.backend,
    )
    table.add_row("LLM providers", ", ".join(llm_providers()), settings.llm.provider)

    console.print(table)


if __name__ == "__main__":
    app()
