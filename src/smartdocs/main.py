import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Annotated, NoReturn

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from typer import Exit, Option, Typer

from .config import Settings, configure_logging
from .errors import SmartDocsError
from .models import User
from .services import Services, build_services

app = Typer(help="SmartDocs: store, search and question your documents.")
console = Console()

DbPathOption = Annotated[
    str | None,
    Option("--db-path", help="DuckDB metadata path (defaults to SMARTDOCS_DB_PATH)."),
]
BlobRootOption = Annotated[
    str | None,
    Option("--blob-root", help="Blob directory (defaults to SMARTDOCS_BLOB_ROOT)."),
]
UserOption = Annotated[str, Option("--user", "-u", help="Id of the acting user.")]


def _services(db_path: str | None, blob_root: str | None) -> Services:
    settings = Settings.from_env()
    settings = replace(
        settings,
        db_path=db_path or settings.db_path,
        blob_root=blob_root or settings.blob_root,
    )
    try:
        return build_services(settings)
    except SmartDocsError as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/] {message}")
    raise Exit(code=1)


@app.callback()
def main(
    log_level: Annotated[
        str | None, Option("--log-level", help="Logging level (default INFO).")
    ] = None,
) -> None:
    configure_logging(log_level)


@app.command()
def serve(
    host: Annotated[str, Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, Option(help="Port to listen on.")] = 8000,
) -> None:
    """Run the HTTP API."""
    from .server import run_server

    run_server(host=host, port=port)


@app.command("create-user")
def create_user(
    email: Annotated[str, Option(help="Unique email address.")],
    name: Annotated[str, Option(help="Display name.")],
    plan: Annotated[str, Option(help="free or pro.")] = "free",
    db_path: DbPathOption = None,
    blob_root: BlobRootOption = None,
) -> None:
    """Register a user and print its id."""
    services = _services(db_path, blob_root)
    try:
        user = services.store.create_user(User(email=email, name=name, plan=plan))  # type: ignore[arg-type]
    except SmartDocsError as e:
        _fail(str(e))
    finally:
        services.close()
    console.print(f"Created user [bold]{user.id}[/] ({user.email})")


@app.command()
def upload(
    file: Annotated[Path, Option("--file", "-f", help="File to upload.")],
    user: UserOption,
    db_path: DbPathOption = None,
    blob_root: BlobRootOption = None,
) -> None:
    """Upload a file, then summarize and embed it."""
    if not file.is_file():
        _fail(f"No such file: {file}")
    services = _services(db_path, blob_root)
    try:
        with console.status(status="Processing document..."):
            document = asyncio.run(
                services.processor.upload_and_process(user, file.name, file.read_bytes())
            )
    except SmartDocsError as e:
        _fail(str(e))
    finally:
        services.close()

    if document.error is not None:
        _fail(f"Processing failed for {document.file_name}: {document.error}")
    content = f"**{document.file_name}** (`{document.id}`)\n\n{document.summary}"
    if document.key_points:
        content += "\n\n" + "\n".join(f"- {point}" for point in document.key_points)
    console.print(
        Panel(Markdown(content), title="Summary", title_align="left", border_style="bold green")
    )


@app.command()
def search(
    query: Annotated[str, Option("--query", "-q", help="Free-text query.")],
    user: UserOption,
    limit: Annotated[
        int | None, Option("--limit", "-k", help="Maximum results.")
    ] = None,
    min_score: Annotated[
        float | None, Option(help="Drop results scoring below this value.")
    ] = None,
    db_path: DbPathOption = None,
    blob_root: BlobRootOption = None,
) -> None:
    """Rank a user's documents against a query."""
    services = _services(db_path, blob_root)
    try:
        results = asyncio.run(
            services.search.search(
                user_id=user,
                query=query,
                limit=limit or services.settings.search_limit,
                min_score=min_score,
            )
        )
    except SmartDocsError as e:
        _fail(str(e))
    finally:
        services.close()

    if not results:
        console.print("No matching documents.")
        return
    table = Table(title=f"Results for {query!r}")
    table.add_column("Score", justify="right")
    table.add_column("Document")
    table.add_column("Uploaded")
    table.add_column("Summary")
    for result in results:
        table.add_row(
            f"{result.score:.3f}",
            result.document.file_name,
            result.document.uploaded_at.strftime("%Y-%m-%d %H:%M"),
            (result.relevant_chunk or "")[:80],
        )
    console.print(table)


@app.command()
def ask(
    question: Annotated[str, Option("--question", "-q", help="Question to answer.")],
    user: UserOption,
    limit: Annotated[
        int | None, Option("--limit", "-k", help="Documents to use as context.")
    ] = None,
    db_path: DbPathOption = None,
    blob_root: BlobRootOption = None,
) -> None:
    """Answer a question from the user's documents."""
    services = _services(db_path, blob_root)
    try:
        with console.status(status="Thinking..."):
            response = asyncio.run(
                services.chat.ask(
                    user_id=user,
                    message=question,
                    limit=limit or services.settings.search_limit,
                )
            )
    except SmartDocsError as e:
        _fail(str(e))
    finally:
        services.close()

    content = response.message
    if response.sources:
        content += "\n\n**Sources:** " + ", ".join(response.sources)
    console.print(
        Panel(Markdown(content), title="Answer", title_align="left", border_style="bold green")
    )
