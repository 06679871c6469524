import logging
from typing import List, Optional

from sunny.models.chat import ChatMessage, ChatResponse, Role
from sunny.services.llm import LLMService, get_llm
from sunny.utils.text_utils import clamp_text

logger = logging.getLogger(__name__)

MAX_CONTEXT_MESSAGES = 12
MAX_MESSAGE_CHARS = 2000

EMPTY_CONVERSATION_REPLY = "Hello! How can I help you today?"
DEMO_REPLY = (
    "Hi, I'm Sunny! 🌞 I'm in demo mode right now, but I'd love to explore "
    "space, dinosaurs, or fractions with you. What sounds fun?"
)
ERROR_REPLY = "Oops! My brain is feeling a bit fuzzy right now. Could you ask me something else? 🧠✨"


def system_prompt(emotion: Optional[str] = None) -> str:
    return (
        "You are Sunny, a cheerful, concise AI tutor for kids. Keep answers brief "
        "(2-3 sentences), friendly, and age-appropriate. "
        f"Current emotion: {emotion or 'neutral'}."
    )


def prepare_messages(messages: List[ChatMessage]) -> List[dict]:
    """
    Garde les 12 derniers messages non vides, coupés à 2000 caractères.
    Les messages "system" du client sont ignorés (le prompt système est le nôtre).
    """
    conv = [
        {"role": m.role.value, "content": clamp_text(m.content.strip(), MAX_MESSAGE_CHARS)}
        for m in messages
        if m.role != Role.system and m.content.strip()
    ]
    return conv[-MAX_CONTEXT_MESSAGES:]


class ChatService:
    """
    Chat avec Sunny.
    - LLM disponible : appel OpenAI avec le prompt système de Sunny.
    - Mode démo ou erreur : réponse locale amicale (toujours 200).
    """

    def __init__(self, llm: Optional[LLMService] = None):
        self._llm = llm

    @property
    def llm(self) -> LLMService:
        return self._llm or get_llm()

    def reply(self, messages: List[ChatMessage], emotion: Optional[str] = None) -> ChatResponse:
        conv = prepare_messages(messages)
        if not conv:
            return ChatResponse(content=EMPTY_CONVERSATION_REPLY, demoMode=not self.llm.is_available())

        if not self.llm.is_available():
            return ChatResponse(content=DEMO_REPLY, demoMode=True)

        try:
            text = self.llm.complete(
                [{"role": "system", "content": system_prompt(emotion)}] + conv,
                max_tokens=300,
                temperature=0.7,
            )
            return ChatResponse(content=text)
        except Exception as e:
            logger.warning("OpenAI error: %s. Fallback reply.", e)
            return ChatResponse(content=ERROR_REPLY)
