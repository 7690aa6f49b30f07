"""Typer CLI entrypoint for the catalog browser."""

from __future__ import annotations

import asyncio
import locale
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .browser import CatalogBrowser
from .config import CatalogConfig, ConfigRepository, EntityKind, SortKey
from .engine import AuthorDetail, BookDetail, SearchSession, Status
from .errors import AccessDenied, CatalogError
from .logging_conf import configure_logging, log_file, tail_log

app = typer.Typer(
    help="Search and page through the Open Library catalog.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
search_app = typer.Typer(name="search", help="Search books or authors.", no_args_is_help=True)
show_app = typer.Typer(name="show", help="Show one book or author.", no_args_is_help=True)
config_app = typer.Typer(name="config", help="Inspect or change configuration.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Read log files.", no_args_is_help=True)

console = Console()


class BookSort(str, Enum):
    TITLE = "title"
    YEAR = "year"


class AuthorSort(str, Enum):
    NAME = "name"
    BIRTH = "birth"


_SORT_KEYS = {
    BookSort.TITLE: SortKey.PRIMARY,
    BookSort.YEAR: SortKey.SECONDARY,
    AuthorSort.NAME: SortKey.PRIMARY,
    AuthorSort.BIRTH: SortKey.SECONDARY,
}


@dataclass
class AppState:
    repository: ConfigRepository
    config: CatalogConfig
    browser_factory: Callable[[CatalogConfig], CatalogBrowser] = field(default=CatalogBrowser)

    def browser(self) -> CatalogBrowser:
        return self.browser_factory(self.config)


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        configure_logging().warning("collation_locale_unavailable")
    repository = ConfigRepository()
    return AppState(repository=repository, config=repository.load_config())


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


async def _collect_pages(
    state: AppState, kind: EntityKind, query: str, sort_key: SortKey, pages: int
) -> SearchSession:
    async with state.browser() as browser:
        controller = browser.open_session(kind)
        controller.set_sort(sort_key)
        controller.set_query(query)
        session = await controller.submit()
        while session.accepted_page < pages and controller.driver.can_load_more(session):
            session = await controller.load_more()
        return session


def _render_results(session: SearchSession) -> Table:
    is_books = session.kind is EntityKind.BOOKS
    table = Table(
        title=f"{session.kind.value.capitalize()} matching “{session.query}” · {len(session.results)}",
        box=box.SIMPLE_HEAD,
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title" if is_books else "Name", style="cyan", overflow="fold")
    table.add_column("Author" if is_books else "Works", style="magenta")
    table.add_column("Published" if is_books else "Born", style="green")
    table.add_column("Key", style="dim", no_wrap=True)
    for index, record in enumerate(session.results, start=1):
        table.add_row(
            str(index),
            record.display_title,
            record.display_subtitle or "-",
            record.sortable_secondary or "-",
            record.key,
        )
    return table


def _run_search(ctx: typer.Context, kind: EntityKind, query: str, sort_key: SortKey, pages: int) -> None:
    state = _get_state(ctx)
    minimum = state.config.entity(kind).min_query_length
    if len(query.strip()) < max(1, minimum):
        console.print(f"Query must be at least {max(1, minimum)} characters.", style="yellow")
        raise typer.Exit(code=0)
    try:
        session = asyncio.run(_collect_pages(state, kind, query, sort_key, pages))
    except AccessDenied as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    if session.results:
        console.print(_render_results(session))
    else:
        console.print("No results found.", style="yellow")
    if session.status is Status.ERROR:
        console.print(f"Page {session.page} failed: {session.last_error}", style="red")
        raise typer.Exit(code=1)
    if session.status is Status.EXHAUSTED:
        console.print("End of results.", style="dim")


app.add_typer(search_app, name="search")
app.add_typer(show_app, name="show")
app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@search_app.command("books", help="Search books; queries need at least 3 characters.")
def search_books(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Free-text query."),
    sort: BookSort = typer.Option(BookSort.TITLE, "--sort", help="Order by title or year."),
    pages: int = typer.Option(1, "--pages", min=1, help="Number of pages to load."),
) -> None:
    _run_search(ctx, EntityKind.BOOKS, query, _SORT_KEYS[sort], pages)


@search_app.command("authors", help="Search authors by name.")
def search_authors(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Free-text query."),
    sort: AuthorSort = typer.Option(AuthorSort.NAME, "--sort", help="Order by name or birth date."),
    pages: int = typer.Option(1, "--pages", min=1, help="Number of pages to load."),
) -> None:
    _run_search(ctx, EntityKind.AUTHORS, query, _SORT_KEYS[sort], pages)


async def _fetch_detail(state: AppState, kind: EntityKind, key: str) -> BookDetail | AuthorDetail:
    async with state.browser() as browser:
        browser.gate.require(kind)
        if kind is EntityKind.BOOKS:
            return await browser.details.get_book(key)
        return await browser.details.get_author(key)


def _show(ctx: typer.Context, kind: EntityKind, key: str) -> BookDetail | AuthorDetail:
    state = _get_state(ctx)
    try:
        return asyncio.run(_fetch_detail(state, kind, key))
    except CatalogError as exc:
        console.print(f"Unable to load {key}: {exc}", style="red")
        raise typer.Exit(code=1)


@show_app.command("book", help="Show a work with its authors.")
def show_book(ctx: typer.Context, key: str = typer.Argument(..., help="Work key, e.g. /works/OL27448W.")) -> None:
    detail = _show(ctx, EntityKind.BOOKS, key)
    console.print(f"[bold]{detail.title}[/bold]")
    console.print("by " + ", ".join(author.name for author in detail.authors or ()))
    if detail.first_publish_date:
        console.print(f"First published: {detail.first_publish_date}")
    if detail.subjects:
        console.print("Subjects: " + ", ".join(detail.subjects[:10]), style="dim")
    if detail.description:
        console.print(detail.description)
    if detail.cover_url:
        console.print(f"Cover: {detail.cover_url}", style="dim")


@show_app.command("author", help="Show an author's biography.")
def show_author(ctx: typer.Context, key: str = typer.Argument(..., help="Author key, e.g. OL26320A.")) -> None:
    detail = _show(ctx, EntityKind.AUTHORS, key)
    console.print(f"[bold]{detail.name}[/bold]")
    if detail.fuller_name:
        console.print(f"Full name: {detail.fuller_name}")
    if detail.birth_date:
        console.print(f"Born: {detail.birth_date}")
    if detail.death_date:
        console.print(f"Died: {detail.death_date}")
    if detail.bio:
        console.print(detail.bio)
    if detail.photo_url:
        console.print(f"Photo: {detail.photo_url}", style="dim")


@config_app.command("show", help="Print the active configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(f"# {state.repository.locator.config_path()}", style="dim")
    console.print(
        yaml.safe_dump(state.config.model_dump(mode="json"), allow_unicode=True, sort_keys=False),
        markup=False,
    )


@config_app.command("set-permissions", help="Choose which entity kinds may be browsed.")
def config_set_permissions(
    ctx: typer.Context,
    kinds: List[EntityKind] = typer.Argument(..., help="books and/or authors."),
) -> None:
    state = _get_state(ctx)
    updated = state.config.model_copy(update={"permissions": list(dict.fromkeys(kinds))})
    path = state.repository.save_config(updated)
    state.config = updated
    console.print(
        "Permissions set to " + ", ".join(kind.value for kind in updated.permissions) + f" ({path}).",
        style="green",
    )


@log_app.command("tail", help="Print the last lines of a log file.")
def log_tail(
    name: str = typer.Option("catalog", "--name", help="catalog, error, books or authors."),
    lines: int = typer.Option(50, "--lines", min=1, help="Number of lines."),
) -> None:
    path = log_file(name)
    content = tail_log(path, lines)
    if not content:
        console.print(f"No log entries in {path}.", style="yellow")
        raise typer.Exit(code=0)
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


__all__ = ["AppState", "app", "build_state"]


if __name__ == "__main__":  # pragma: no cover
    app()
