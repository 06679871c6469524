import json
import logging
from typing import Any, Dict, List, Optional

from sunny.core.config import get_settings

logger = logging.getLogger(__name__)


class LLMUnavailable(RuntimeError):
    pass


class LLMService:
    """
    Fine couche autour du client OpenAI (openai>=1.0).
    - Client créé à la demande, uniquement si une vraie clé est configurée.
    - En mode démo : is_available() == False, les appelants utilisent leur fallback.
    """

    def __init__(self, model: Optional[str] = None):
        self._model = model
        self._client = None

    @property
    def model(self) -> str:
        return self._model or get_settings().OPENAI_MODEL

    def is_available(self) -> bool:
        return not get_settings().demo_mode

    def _get_client(self):
        if not self.is_available():
            raise LLMUnavailable("Demo mode: OpenAI disabled")
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=get_settings().OPENAI_API_KEY)
        return self._client

    def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int = 400,
        temperature: float = 0.7,
    ) -> str:
        comp = self._get_client().chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        text = (comp.choices[0].message.content or "").strip()
        if not text:
            raise LLMUnavailable("Empty completion")
        return text

    def complete_json(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int = 800,
        temperature: float = 0.7,
    ) -> Any:
        comp = self._get_client().chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        raw = comp.choices[0].message.content or ""
        if not raw.strip():
            raise LLMUnavailable("Empty JSON completion")
        return json.loads(raw)


_llm: Optional[LLMService] = None


def get_llm() -> LLMService:
    global _llm
    if _llm is None:
        _llm = LLMService()
    return _llm
