"""CLI entry point for lorecache."""

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .annotations.compatibility import CompatibilityAnalyzer, CompatibilityPanel
from .annotations.fetcher import AnnotationFetcher
from .annotations.ledger import NoteLedger
from .annotations.reconciler import available_suggestions
from .annotations.session import EntitySession
from .config import DEFAULT_CONFIG, load_config
from .errors import ValidationFailure
from .generation import GeneratorBase, get_generator
from .logging_config import configure_logging
from .models import ArtifactKind, EntityKind, NoteSource
from .search import SearchDebouncer
from .storage import CacheStore, cache_key, get_store
from .storage.keys import NOTES, SCORE

console = Console()

ENTITY_KINDS = click.Choice([k.value for k in EntityKind])


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """lorecache - generated descriptions, insights and notes for the multiverse."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    configure_logging(verbose)


def _get_config(ctx) -> dict:
    return load_config(ctx.obj.get("config_path"))


def _get_store(config: dict) -> CacheStore:
    return CacheStore(get_store(config))


def _make_generator(ctx, config: dict) -> GeneratorBase:
    try:
        return get_generator(config)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)


def _run_session(ctx, config: dict, entity_kind: EntityKind, entity_id: str) -> EntitySession:
    """Open an entity in a fresh session and wait for its artifacts."""
    store = _get_store(config)
    generator = _make_generator(ctx, config)

    async def _open() -> EntitySession:
        try:
            session = EntitySession(entity_kind, AnnotationFetcher(store, generator), store)
            await session.open(entity_id)
            return session
        finally:
            await generator.aclose()

    return asyncio.run(_open())


def _print_notes(notes) -> None:
    if not notes:
        console.print("[dim]No notes yet.[/]")
        return
    table = Table(title="Your Notes")
    table.add_column("ID", style="dim")
    table.add_column("Note")
    table.add_column("Source", style="cyan")
    table.add_column("Created", style="dim")
    for note in notes:
        source = "AI" if note.source is NoteSource.SUGGESTION else "Custom"
        table.add_row(note.id, note.content, source, note.created_at)
    console.print(table)


def _print_suggestions(suggestions: list[str]) -> None:
    console.print(f"\n[bold]AI-Generated Suggestions[/] [dim]({len(suggestions)} suggestions)[/]")
    if not suggestions:
        console.print("  [dim]No suggestions available[/]")
    for i, text in enumerate(suggestions, 1):
        console.print(f"  [green]{i}.[/] {text}")


@cli.command()
@click.option("--path", default=None, help="Directory for config and store")
def init(path):
    """Create a config file and an empty local store."""
    import yaml

    base = Path(path).expanduser().resolve() if path else Path("~/.lorecache").expanduser()
    base.mkdir(parents=True, exist_ok=True)

    config_file = base / "config.yaml"
    if config_file.exists():
        console.print(f"[yellow]Config already exists: {config_file}[/]")
        return

    cfg = dict(DEFAULT_CONFIG)
    cfg["storage_path"] = str(base / "store.json")
    header = (
        "# Claude API key for generator: claude (or set ANTHROPIC_API_KEY env var)\n"
        "# claude_api_key: sk-ant-your-key-here\n\n"
    )
    config_file.write_text(header + yaml.dump(cfg, default_flow_style=False))
    console.print(f"[bold green]✓ Created config: {config_file}[/]")


@cli.command()
@click.argument("kind", type=ENTITY_KINDS)
@click.argument("entity_id")
@click.pass_context
def describe(ctx, kind, entity_id):
    """Show the generated description of a character or location."""
    config = _get_config(ctx)
    session = _run_session(ctx, config, EntityKind(kind), entity_id)

    state = session.states[ArtifactKind.DESCRIPTION]
    if state.error:
        console.print(f"[red]Error loading description: {state.error}[/]")
        ctx.exit(1)
    if session.description:
        console.print(session.description)
    else:
        console.print("[dim]No description available[/]")


@cli.command()
@click.argument("character_id")
@click.pass_context
def insights(ctx, character_id):
    """Show a character's notes and the suggestions not yet taken."""
    config = _get_config(ctx)
    session = _run_session(ctx, config, EntityKind.CHARACTER, character_id)

    _print_notes(session.notes)
    state = session.states[ArtifactKind.INSIGHTS]
    if state.error:
        console.print(f"[red]Error loading suggestions: {state.error}[/]")
        ctx.exit(1)
    _print_suggestions(session.available_suggestions)


@cli.command()
@click.argument("character_id")
@click.argument("choice")
@click.pass_context
def suggest(ctx, character_id, choice):
    """Promote a suggestion to a note, by its number or exact text."""
    config = _get_config(ctx)
    session = _run_session(ctx, config, EntityKind.CHARACTER, character_id)

    state = session.states[ArtifactKind.INSIGHTS]
    if state.error:
        console.print(f"[red]Error loading suggestions: {state.error}[/]")
        ctx.exit(1)

    available = session.available_suggestions
    text = choice
    if choice.isdigit():
        index = int(choice)
        if not 1 <= index <= len(available):
            console.print(f"[red]No suggestion #{index} ({len(available)} available)[/]")
            ctx.exit(1)
        text = available[index - 1]

    note = session.select_suggestion(text)
    if note is None:
        console.print(f"[red]{session.validation_error}[/]")
        ctx.exit(1)
    console.print(f"[green]✓ {session.notification}[/] [dim]({note.id})[/]")


@cli.group()
def notes():
    """List, add and delete notes."""


@notes.command("list")
@click.argument("kind", type=ENTITY_KINDS)
@click.argument("entity_id")
@click.pass_context
def notes_list(ctx, kind, entity_id):
    """List notes for an entity."""
    ledger = NoteLedger(_get_store(_get_config(ctx)), EntityKind(kind), entity_id)
    _print_notes(ledger.load())


@notes.command("add")
@click.argument("kind", type=ENTITY_KINDS)
@click.argument("entity_id")
@click.argument("content")
@click.pass_context
def notes_add(ctx, kind, entity_id, content):
    """Add a custom note."""
    ledger = NoteLedger(_get_store(_get_config(ctx)), EntityKind(kind), entity_id)
    ledger.load()
    try:
        note = ledger.add_user(content)
    except ValidationFailure as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)
    console.print(f"[green]✓ Note added successfully![/] [dim]({note.id})[/]")
    if not ledger.persisted:
        console.print("[yellow]Note could not be saved to local storage.[/]")


@notes.command("delete")
@click.argument("kind", type=ENTITY_KINDS)
@click.argument("entity_id")
@click.argument("note_id")
@click.pass_context
def notes_delete(ctx, kind, entity_id, note_id):
    """Delete a note. A deleted AI note returns to the suggestions."""
    config = _get_config(ctx)
    store = _get_store(config)
    entity_kind = EntityKind(kind)
    ledger = NoteLedger(store, entity_kind, entity_id)
    ledger.load()

    note = ledger.delete(note_id)
    if note is None:
        console.print(f"[yellow]No note {note_id}[/]")
        ctx.exit(1)
    console.print(f"[green]✓ Deleted note {note_id}[/]")

    if note.source is NoteSource.SUGGESTION and entity_kind is EntityKind.CHARACTER:
        cached = store.read_json(cache_key(entity_kind, entity_id, ArtifactKind.INSIGHTS))
        if isinstance(cached, list) and note.content in available_suggestions(cached, ledger.notes):
            console.print("  [dim]Suggestion is available again.[/]")


@cli.command()
@click.argument("location_id")
@click.option("--score", type=click.FloatRange(0, 10), default=None, help="Save your own score (0-10)")
@click.pass_context
def evaluate(ctx, location_id, score):
    """Evaluate a location's description and show the saved score."""
    config = _get_config(ctx)
    session = _run_session(ctx, config, EntityKind.LOCATION, location_id)

    desc_state = session.states[ArtifactKind.DESCRIPTION]
    if desc_state.error:
        console.print(f"[red]Error loading description: {desc_state.error}[/]")
        ctx.exit(1)

    eval_state = session.states[ArtifactKind.EVALUATION]
    evaluation = session.evaluation
    if eval_state.error:
        console.print(f"[red]Error evaluating location: {eval_state.error}[/]")
    elif evaluation is not None:
        table = Table(title=f"Evaluation: location {location_id}")
        table.add_column("Check")
        table.add_column("Result", justify="center")
        for name, passed in evaluation.checks.to_dict().items():
            table.add_row(name, "[green]✓[/]" if passed else "[red]✗[/]")
        console.print(table)
        console.print(f"  Auto score: [bold]{evaluation.auto_score}[/]/10")
        if evaluation.explanation:
            console.print(f"  [dim]{evaluation.explanation}[/]")

    if score is not None:
        saved = session.rate(score)
        if saved is None:
            console.print(f"[red]{session.validation_error}[/]")
            ctx.exit(1)
    saved = session.saved_score
    if saved is not None:
        console.print(f"  Your score: [bold green]{saved.score}[/]/10 [dim](saved {saved.timestamp})[/]")


@cli.command()
@click.argument("character1_id")
@click.argument("character2_id")
@click.argument("location_id")
@click.pass_context
def compat(ctx, character1_id, character2_id, location_id):
    """Cross-character compatibility at a location."""
    config = _get_config(ctx)
    generator = _make_generator(ctx, config)

    async def _generate():
        try:
            panel = CompatibilityPanel(CompatibilityAnalyzer(generator))
            await panel.generate(character1_id, character2_id, location_id)
            return panel
        finally:
            await generator.aclose()

    panel = asyncio.run(_generate())
    if panel.error:
        console.print(f"[red]{panel.error}[/]")
        ctx.exit(1)

    titles = {"teamWork": "Team Work", "conflicts": "Conflicts", "breaksFirst": "Who Breaks First"}
    for section, items in panel.analysis.items().items():
        console.print(f"\n[bold]{titles[section]}[/]")
        if not items:
            console.print("  [dim]Nothing to report[/]")
        for item in items:
            console.print(f"  • {item}")


@cli.command()
@click.argument("query")
@click.option("--n", "-n", default=None, type=int, help="Number of results")
@click.pass_context
def search(ctx, query, n):
    """Search characters and locations."""
    config = _get_config(ctx)
    if not query.strip():
        console.print("[yellow]Empty query.[/]")
        return
    settings = config.get("search", {})
    limit = n or settings.get("limit", 10)
    generator = _make_generator(ctx, config)

    async def _search() -> SearchDebouncer:
        debouncer = SearchDebouncer(
            generator.search, delay=settings.get("debounce_seconds", 0.3), limit=limit
        )
        try:
            debouncer.on_query_change(query)
            await debouncer.settle()
            return debouncer
        finally:
            await debouncer.aclose()
            await generator.aclose()

    debouncer = asyncio.run(_search())
    if debouncer.error:
        console.print(f"[red]{debouncer.error}[/]")
        ctx.exit(1)
    results = debouncer.results

    if not results:
        console.print("[yellow]No results found.[/]")
        return

    table = Table(title="Search Results")
    table.add_column("#", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("ID", style="dim")
    table.add_column("Score", justify="right", style="green")
    for i, r in enumerate(results, 1):
        table.add_row(str(i), r.name, r.type, r.id, f"{1 - r.distance:.3f}")
    console.print(table)


@cli.group()
def cache():
    """Manage the local store."""


@cache.command("clear")
@click.option("--kind", type=ENTITY_KINDS, default=None, help="Only clear one entity kind")
@click.option("--include-notes", is_flag=True, help="Also delete notes and saved scores")
@click.pass_context
def cache_clear(ctx, kind, include_notes):
    """Drop cached descriptions and insights so they are generated again."""
    store = _get_store(_get_config(ctx))
    kinds = [EntityKind(kind)] if kind else list(EntityKind)
    artifacts = [ArtifactKind.DESCRIPTION.value, ArtifactKind.INSIGHTS.value]
    if include_notes:
        artifacts += [NOTES, SCORE]

    removed = 0
    for entity_kind in kinds:
        for artifact in artifacts:
            removed += store.clear(f"{entity_kind.value}_{artifact}_")
    console.print(f"[green]✓ Removed {removed} cached entr{'y' if removed == 1 else 'ies'}[/]")


if __name__ == "__main__":
    cli()
