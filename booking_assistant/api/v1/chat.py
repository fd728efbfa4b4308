from fastapi import APIRouter, Depends

from booking_assistant.api.dependencies import rate_limited, require_api_key
from booking_assistant.api.v1.schemas import (
    ChatReplySchema,
    ChatRequestSchema,
    ChatResponseSchema,
    ClearContextRequestSchema,
    MessageResponseSchema,
    SessionContextResponseSchema,
    SessionContextSchema,
)
from booking_assistant.application.exceptions import ValidationError
from booking_assistant.application.use_cases.handle_chat_message import HandleChatMessageUseCase
from booking_assistant.application.utils.rate_limiter import CHAT_SCOPE
from booking_assistant.wiring.dependencies import get_handle_chat_use_case

router = APIRouter(
    prefix="/api/chat",
    dependencies=[Depends(rate_limited(CHAT_SCOPE)), Depends(require_api_key)],
)


@router.post("", response_model=ChatResponseSchema)
def chat(
    req: ChatRequestSchema,
    uc: HandleChatMessageUseCase = Depends(get_handle_chat_use_case),
):
    reply = uc.handle(req.session_id, req.message)
    return ChatResponseSchema(
        response=ChatReplySchema(
            type=reply.type,
            message=reply.message,
            step=reply.step,
            is_complete=reply.is_complete,
            booking_id=reply.booking_id,
            data=reply.data,
        )
    )


@router.post("/context/clear", response_model=MessageResponseSchema)
def clear_context(
    req: ClearContextRequestSchema,
    uc: HandleChatMessageUseCase = Depends(get_handle_chat_use_case),
):
    uc.clear(req.session_id)
    return MessageResponseSchema(message="Context cleared successfully")


@router.get("/context/{session_id}", response_model=SessionContextResponseSchema)
def get_context(
    session_id: str,
    uc: HandleChatMessageUseCase = Depends(get_handle_chat_use_case),
):
    if len(session_id) > 100:
        raise ValidationError(["Invalid session ID"])

    session = uc.get_session(session_id)
    return SessionContextResponseSchema(
        data=SessionContextSchema(
            session_id=session.session_id,
            step=session.step.value,
            collected=session.fields.to_dict(),
            booking_id=session.booking_id,
            has_active_booking=session.in_booking_flow,
            updated_at=session.updated_at,
        )
    )
