"""Commands for browsing and exporting stored recipes."""

import json
from pathlib import Path

import typer

from recipe_crawler.db import get_connection, init_db
from recipe_crawler.db.recipes import (
    count_recipes,
    get_recipe,
    list_recipes,
    search_recipes,
)

recipes_app = typer.Typer(help="Browse and export stored recipes.", no_args_is_help=True)


@recipes_app.command("list")
def recipes_list(
    limit: int = typer.Option(20, "--limit", help="Maximum number of recipes to show."),
    offset: int = typer.Option(0, "--offset", help="Number of recipes to skip."),
) -> None:
    """List stored recipes, newest first."""
    conn = get_connection()
    init_db(conn)
    try:
        recipes = list_recipes(conn, limit=limit, offset=offset)
        total = count_recipes(conn)
    finally:
        conn.close()

    if not recipes:
        typer.echo("No recipes stored yet.")
        return
    typer.echo(f"{total} recipe(s) stored:")
    for r in recipes:
        typer.echo(f" - {r.record.name or '(untitled)'}  [{r.id[:8]}]  {r.record.source_url}")


@recipes_app.command("search")
def recipes_search(
    query: str = typer.Argument(..., help="Words to look for in names, ingredients and tags."),
    top_k: int = typer.Option(10, "--top-k", help="Maximum number of results."),
) -> None:
    """Full-text search over stored recipes."""
    conn = get_connection()
    init_db(conn)
    try:
        results = search_recipes(conn, query, top_k=top_k)
    finally:
        conn.close()

    if not results:
        typer.echo(f"No results for {query!r}.")
        return
    for r in results:
        typer.echo(f" - {r.record.name or '(untitled)'}  [{r.id[:8]}]")


@recipes_app.command("show")
def recipes_show(
    recipe_id: str = typer.Argument(..., help="Recipe id."),
) -> None:
    """Print one recipe as JSON."""
    conn = get_connection()
    init_db(conn)
    try:
        recipe = get_recipe(conn, recipe_id)
    finally:
        conn.close()

    if recipe is None:
        typer.echo(f"❌ Recipe not found: {recipe_id}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(recipe.record.to_item(), indent=2, ensure_ascii=False))


@recipes_app.command("export")
def recipes_export(
    output: Path = typer.Argument(..., help="Destination JSONL file."),
) -> None:
    """Write every stored recipe to a JSON Lines file."""
    conn = get_connection()
    init_db(conn)
    try:
        total = count_recipes(conn)
        recipes = list_recipes(conn, limit=max(total, 1))
    finally:
        conn.close()

    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as fh:
        for r in reversed(recipes):
            fh.write(json.dumps(r.record.to_item(), ensure_ascii=False) + "\n")
    typer.echo(f"✅ Exported {len(recipes)} recipe(s) to {output}")
