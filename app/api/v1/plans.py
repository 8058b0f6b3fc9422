from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_travel_client
from app.core.exceptions import AuthenticationError, IntegrationError
from app.integrations.travel_api import TravelApiClient
from app.schemas.subscription import Plan

router = APIRouter()


@router.get("/", response_model=List[Plan], response_model_by_alias=True)
async def list_plans(client: TravelApiClient = Depends(get_travel_client)):
    try:
        plans = await client.get_all_plans()
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=exc.message)
    except IntegrationError as exc:
        raise HTTPException(status_code=502, detail=exc.message)
    return [plan for plan in plans if plan.is_active]
