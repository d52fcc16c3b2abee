"""
Card search endpoint.

Proxies the external card catalog and returns normalized cards with the
current TCG banlist status applied.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Query

from ygodeck.api.deps import Catalog
from ygodeck.services.catalog import CardQuery

router = APIRouter(prefix="/cards", tags=["cards"])

QueryParam = Annotated[str | None, Query()]


@router.get("")
async def search_cards(
    catalog: Catalog,
    fname: QueryParam = None,
    type: QueryParam = None,
    attribute: QueryParam = None,
    race: QueryParam = None,
    level: QueryParam = None,
    atk: QueryParam = None,
    defense: Annotated[str | None, Query(alias="def")] = None,
    offset: QueryParam = None,
    num: QueryParam = None,
    id: QueryParam = None,
) -> list[dict[str, Any]]:
    """
    Search cards.

    All parameters are optional; with none set the first page of the
    catalog is returned. atk and def take "asc", "desc" or a minimum value.
    A catalog "no match" is an empty list. Catalog failures are 502.
    """
    query = CardQuery.parse(
        {
            "fname": fname,
            "type": type,
            "attribute": attribute,
            "race": race,
            "level": level,
            "atk": atk,
            "def": defense,
            "offset": offset,
            "num": num,
            "id": id,
        }
    )
    cards = await catalog.search(query)
    return [card.to_catalog_dict() for card in cards]
