from fastapi import APIRouter, Depends, Query

from creator_live.api.v1.dependency import CurrentUser
from creator_live.api.v1.schemas.base import ApiOut
from creator_live.api.v1.schemas.call import CallDetailsOut
from creator_live.domain.call.call_domain import CallService

router = APIRouter(prefix="/call", tags=["Call"])

_call_service = CallService()


def get_call_service() -> CallService:
    return _call_service


@router.get("/agora/details")
async def get_call_details(
    user: CurrentUser,
    service: CallService = Depends(get_call_service),
    room_id: str | None = Query(None, description="Video call room id"),
    user_id: str | None = Query(None, description="Must be the authenticated user"),
) -> ApiOut[CallDetailsOut]:
    """Publisher credential for a participant of the room's active video call."""
    credential = await service.get_call_credential(user.user_id, room_id, user_id)
    return ApiOut[CallDetailsOut](
        message="Agora app details retrieved successfully",
        data=CallDetailsOut(
            agora_app_certificate=credential.app_secret,
            agora_app_id=credential.app_id,
            token=credential.token,
            uid=credential.uid,
        ),
    )
