from fastapi import APIRouter, Depends, Query

from streamhub.api.v1.dependency import CurrentMember
from streamhub.api.v1.schemas.base import ApiOut
from streamhub.api.v1.schemas.stream import (
    AttendanceOut,
    CreateInstantEventIn,
    CreateStreamIn,
    JoinStreamIn,
    ProcessJoinRequestIn,
    RescheduleStreamIn,
    StreamIdIn,
    StreamOut,
    UpdateStreamIn,
    UpdateVisibilityIn,
    VisibilityChangeOut,
)
from streamhub.domain.live.stream.stream_domain import StreamService
from streamhub.domain.live.stream.stream_models import (
    CreateInstantEventParams,
    CreateStreamParams,
    RescheduleStreamParams,
    UpdateStreamParams,
)

router = APIRouter(prefix="/stream")

# Singleton instance, created on first use
_stream_service: StreamService | None = None


def get_stream_service() -> StreamService:
    """Get the singleton StreamService instance."""
    global _stream_service
    if _stream_service is None:
        _stream_service = StreamService()
    return _stream_service


@router.post("/create_event")
async def create_event(
    params: CreateStreamIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    """Create a scheduled calendar event organized by the authenticated member."""
    result = await service.create_event(CreateStreamParams(**params.model_dump()), member)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/create_instant_event")
async def create_instant_event(
    params: CreateInstantEventIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    result = await service.create_instant_event(
        CreateInstantEventParams(**params.model_dump()), member
    )
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/create_live_broadcast")
async def create_live_broadcast(
    params: CreateStreamIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    """Create a live broadcast on the authenticated member's channel."""
    result = await service.create_live_broadcast(CreateStreamParams(**params.model_dump()), member)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.get("/get_stream")
async def get_stream(
    member: CurrentMember,
    stream_id: str = Query(..., min_length=1),
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    result = await service.get_stream(stream_id)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/update_stream")
async def update_stream(
    params: UpdateStreamIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    update_params = UpdateStreamParams(**params.model_dump(exclude={"stream_id"}))
    result = await service.update_stream(params.stream_id, update_params, member)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/cancel_stream")
async def cancel_stream(
    params: StreamIdIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    result = await service.cancel_stream(params.stream_id, member)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/delete_stream")
async def delete_stream(
    params: StreamIdIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    result = await service.delete_stream(params.stream_id, member)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/reschedule_stream")
async def reschedule_stream(
    params: RescheduleStreamIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[StreamOut]:
    reschedule_params = RescheduleStreamParams(**params.model_dump(exclude={"stream_id"}))
    result = await service.reschedule_stream(params.stream_id, reschedule_params, member)
    return ApiOut[StreamOut](results=StreamOut(**result.model_dump()))


@router.post("/update_visibility")
async def update_visibility(
    params: UpdateVisibilityIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[VisibilityChangeOut]:
    """Change who may attend; opening a stream to the public approves pending requests."""
    result = await service.update_visibility(params.stream_id, params.visibility, member)
    return ApiOut[VisibilityChangeOut](results=VisibilityChangeOut(**result.model_dump()))


@router.post("/join")
async def join(
    params: JoinStreamIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[AttendanceOut]:
    result = await service.join(params.stream_id, member, params.comment)
    return ApiOut[AttendanceOut](results=AttendanceOut(**result.model_dump()))


@router.post("/request_to_join")
async def request_to_join(
    params: JoinStreamIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[AttendanceOut]:
    """Ask the organizer of a private or protected stream to let the member in."""
    result = await service.request_to_join(params.stream_id, member, params.comment)
    return ApiOut[AttendanceOut](results=AttendanceOut(**result.model_dump()))


@router.post("/process_join_request")
async def process_join_request(
    params: ProcessJoinRequestIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[AttendanceOut]:
    result = await service.process_join_request(
        params.stream_id,
        params.attendee_id,
        params.decision,
        member,
        params.comment,
    )
    return ApiOut[AttendanceOut](results=AttendanceOut(**result.model_dump()))


@router.post("/not_attending")
async def not_attending(
    params: StreamIdIn,
    member: CurrentMember,
    service: StreamService = Depends(get_stream_service),
) -> ApiOut[AttendanceOut]:
    result = await service.not_attending(params.stream_id, member)
    return ApiOut[AttendanceOut](results=AttendanceOut(**result.model_dump()))
