from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sunny.core.deps import get_chat_service, get_user_or_404
from sunny.db.database import get_db
from sunny.models.chat import ChatRequest, ChatResponse, Role
from sunny.routers.users import append_chat_history
from sunny.services.chat_service import MAX_MESSAGE_CHARS, ChatService
from sunny.utils.dates import iso, utcnow
from sunny.utils.text_utils import clamp_text

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    db: Session = Depends(get_db),
    service: ChatService = Depends(get_chat_service),
):
    # utilisateur inconnu -> 404 avant tout appel au LLM
    user = get_user_or_404(db, body.userId) if body.userId else None

    resp = service.reply(messages=body.messages, emotion=body.emotion)

    if user is not None:
        now = iso(utcnow())
        entries = []
        last_user = next(
            (m for m in reversed(body.messages) if m.role == Role.user and m.content.strip()),
            None,
        )
        if last_user is not None:
            entries.append({
                "role": "user",
                "content": clamp_text(last_user.content.strip(), MAX_MESSAGE_CHARS),
                "timestamp": now,
            })
        entries.append({
            "role": "assistant",
            "content": clamp_text(resp.content, MAX_MESSAGE_CHARS),
            "timestamp": now,
        })
        append_chat_history(user, entries)
        db.commit()

    return resp
