"""
api/routes/hotels.py
--------------------
GET  /api/hotels/search    lodging search (cached, paginated)
GET  /api/hotels/photo     Places photo relayed without exposing the API key
POST /api/hotels/cluster   k-means grouping on price / rating / distance from centre
"""
from __future__ import annotations

import logging
import random
from typing import Any, Optional

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from api.deps import get_hotel_tool
from api.responses import success
from api.serializers import ser_accommodation
from schemas.travel import Accommodation
from modules.planning.accommodation_clustering import cluster_accommodations, summarize_clusters
from modules.tool_usage.hotel_tool import HotelTool, paginate
from modules.tool_usage.result import failure_text
from modules.validation import ValidationError, require_query_params

logger = logging.getLogger(__name__)

router = APIRouter()


class ClusterRequest(BaseModel):
    accommodations: Optional[list[dict[str, Any]]] = None
    k: int = 3
    seed: Optional[int] = None


@router.get("/search", summary="Search hotels for a destination")
def search_hotels(
    destination: str = Query(""),
    checkin: str = Query(""),
    checkout: str = Query(""),
    adults: str = Query("1"),
    rooms: str = Query("1"),
    maxPrice: str = Query(""),
    page: str = Query("1"),
    limit: str = Query("20"),
    tool: HotelTool = Depends(get_hotel_tool),
) -> dict:
    result = tool.search(
        destination, max_price=maxPrice, checkin=checkin, checkout=checkout, adults=adults, rooms=rooms,
    )
    paged = paginate(result.data, page, limit)
    return success(
        {"hotels": [ser_accommodation(h) for h in paged["items"]]},
        source="cache" if result.cached else result.provider,
        provider=result.provider,
        fallback=result.is_fallback,
        total=paged["total"],
        page=paged["page"],
        limit=paged["limit"],
        totalPages=paged["totalPages"],
    )


@router.get("/photo", summary="Relay a hotel photo from Google Places")
def hotel_photo(
    ref: str = Query(""),
    maxwidth: int = Query(800, ge=1, le=1600),
    tool: HotelTool = Depends(get_hotel_tool),
) -> Response:
    require_query_params({"ref": ref}, ["ref"])
    try:
        body, content_type = tool.photo(ref, max_width=maxwidth)
    except (requests.RequestException, ValueError) as exc:
        logger.warning("[hotels] photo %s unavailable: %s", ref[:16], failure_text(exc, tool.api_key))
        raise HTTPException(status_code=502, detail="Hotel photo unavailable") from exc
    return Response(content=body, media_type=content_type,
                    headers={"Cache-Control": "public, max-age=86400"})


@router.post("/cluster", summary="Group accommodations into price/quality clusters")
def cluster_hotels(req: ClusterRequest) -> dict:
    if not req.accommodations:
        raise ValidationError("accommodations must be a non-empty array")
    if req.k < 1:
        raise ValidationError("k must be at least 1")

    items = [Accommodation.from_dict(a, i) for i, a in enumerate(req.accommodations)]
    rng = random.Random(req.seed) if req.seed is not None else None
    clustered = cluster_accommodations(items, k=req.k, rng=rng)
    return success(
        {
            "accommodations": [ser_accommodation(a) for a in clustered],
            "clusters":       summarize_clusters(clustered),
        },
        algorithm="k_means",
        k=req.k,
    )
