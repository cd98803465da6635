"""Read/delete endpoints for stored recipes.

Routes
------
GET    /recipes                List recipes (``?q=`` for full-text search)
GET    /recipes/{recipe_id}    Fetch a single recipe
DELETE /recipes/{recipe_id}    Delete a recipe
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel

from recipe_crawler.db.models import StoredRecipe
from recipe_crawler.db.recipes import (
    delete_recipe,
    get_recipe,
    list_recipes,
    search_recipes,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class RatingResponse(BaseModel):
    rating_value: Optional[str] = None
    rating_count: Optional[str] = None
    review_count: Optional[str] = None


class RecipeResponse(BaseModel):
    id: str
    source_url: str
    scraped_at: str
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    servings: Optional[str] = None
    ingredients: list[str] = []
    instructions: list[str] = []
    rating: Optional[RatingResponse] = None
    author: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    keywords: Optional[str] = None
    nutrition: Optional[dict[str, str]] = None
    created_at: int
    updated_at: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[RecipeResponse])
def list_all(
    request: Request,
    q: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[dict[str, Any]]:
    """Return stored recipes, or full-text matches for ``q``."""
    conn = request.app.state.db
    recipes: list[StoredRecipe]
    if q:
        recipes = search_recipes(conn, q, top_k=limit)
    else:
        recipes = list_recipes(conn, limit=limit, offset=offset)
    return [r.to_dict() for r in recipes]


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_one(recipe_id: str, request: Request) -> dict[str, Any]:
    """Fetch a single recipe by id."""
    conn = request.app.state.db
    recipe = get_recipe(conn, recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe not found: {recipe_id!r}")
    return recipe.to_dict()


@router.delete("/{recipe_id}")
def remove(recipe_id: str, request: Request) -> Response:
    with request.app.state.db_lock:
        deleted = delete_recipe(request.app.state.db, recipe_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Recipe not found: {recipe_id!r}")
    return Response(status_code=204)
