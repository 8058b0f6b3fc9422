from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_travel_client
from app.core.exceptions import AuthenticationError, IntegrationError
from app.integrations.travel_api import TravelApiClient

router = APIRouter()


@router.get('/my')
async def get_my_subscription(client: TravelApiClient = Depends(get_travel_client)):
    try:
        subscription = await client.get_my_subscription()
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=exc.message)
    except IntegrationError as exc:
        raise HTTPException(status_code=502, detail=exc.message)
    if subscription is None:
        raise HTTPException(status_code=404, detail='No subscription found')
    return subscription.model_dump(mode='json', by_alias=True)
