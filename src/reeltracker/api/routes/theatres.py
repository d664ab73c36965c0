"""Theatre catalog endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from reeltracker.dependencies import get_amc_client
from reeltracker.schemas import TheatreRecord
from reeltracker.services.amc_client import AMCAPIError, AMCClient, BadResponseError

router = APIRouter()


@router.get("/theatres", response_model=list[TheatreRecord])
async def get_theatres(
    postal_code: str | None = Query(None, description="Five-digit US postal code"),
    page_size: int = Query(1000, ge=1, le=1000),
    client: AMCClient = Depends(get_amc_client),
) -> list[TheatreRecord]:
    """
    List theatres, optionally near a postal code.

    Args:
        postal_code: Search near this ZIP code (ignored unless five digits)
        page_size: Maximum theatres to return
        client: Catalog API client

    Returns:
        Theatre records
    """
    try:
        response = await client.fetch_theatres(postal_code=postal_code, page_size=page_size)
    except AMCAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return response.embedded.theatres


@router.get("/theatres/{theatre_id}", response_model=TheatreRecord)
async def get_theatre(
    theatre_id: int,
    client: AMCClient = Depends(get_amc_client),
) -> TheatreRecord:
    try:
        return await client.fetch_theatre(theatre_id)
    except BadResponseError as e:
        status = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status, detail=str(e)) from e
    except AMCAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
