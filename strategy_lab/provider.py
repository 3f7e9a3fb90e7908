"""Gemini access for the whole app.

Every request to the model provider goes through :class:`ProviderClient`.
Each call is a single async round trip on a client opened and closed for
that call, so nothing pooled outlives the event loop the call ran on and
any call can be retried by its caller. A :class:`ChatSession` is the only
object that carries history, and only the turns it was opened with plus
the ones sent through it.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from google import genai
from google.genai import types

from strategy_lab.config import Settings
from strategy_lab.errors import ProviderError
from strategy_lab.models import ChatTurn, InlineImage, Source
from strategy_lab.validation import extract_citations

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], genai.Client]


@dataclass
class StructuredResponse:
    raw_json_text: str
    citations: List[Source] = field(default_factory=list)


async def _round_trip(
    client_factory: ClientFactory,
    request: Callable[[Any], Awaitable[Any]],
    model: str,
    purpose: str,
) -> Any:
    logger.debug(f"Calling {model} for {purpose}")
    try:
        with client_factory() as client:
            async with client.aio as aclient:
                return await request(aclient)
    except Exception as e:
        logger.error(f"Provider call to {model} for {purpose} failed: {str(e)}")
        raise ProviderError(str(e)) from e


def _content(role: str, text: str) -> types.Content:
    return types.Content(role=role, parts=[types.Part.from_text(text=text)])


class ChatSession:
    """Multi-turn conversation opened with a fixed persona and prior turns."""

    def __init__(self, client_factory: ClientFactory, model: str, system_instruction: str, history: List[types.Content]):
        self._client_factory = client_factory
        self.model = model
        self._config = types.GenerateContentConfig(system_instruction=system_instruction)
        self.history = history

    async def send(self, message: str) -> str:
        async def request(aclient):
            chat = aclient.chats.create(model=self.model, config=self._config, history=list(self.history))
            return await chat.send_message(message)

        response = await _round_trip(self._client_factory, request, self.model, "chat")
        reply = response.text or ""
        self.history.extend([_content("user", message), _content("model", reply)])
        return reply


class ProviderClient:
    def __init__(self, settings: Settings, client_factory: Optional[ClientFactory] = None):
        self.settings = settings
        self._client_factory = client_factory or (lambda: genai.Client(api_key=settings.api_key))

    async def _generate(self, model: str, contents: Any, config: Optional[types.GenerateContentConfig], purpose: str):
        async def request(aclient):
            return await aclient.models.generate_content(model=model, contents=contents, config=config)

        return await _round_trip(self._client_factory, request, model, purpose)

    async def generate_structured(
        self,
        prompt: str,
        system_instruction: str,
        schema: types.Schema,
        enable_search_grounding: bool = False,
    ) -> StructuredResponse:
        """
        Ask for a JSON body matching ``schema``. Parsing the body is left to the
        caller; only the raw text and any grounding citations are returned.
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
            thinking_config=types.ThinkingConfig(thinking_budget=self.settings.thinking_budget),
        )
        if enable_search_grounding:
            config.tools = [types.Tool(google_search=types.GoogleSearch())]

        response = await self._generate(self.settings.analysis_model, prompt, config, "structured generation")
        citations = extract_citations(response) if enable_search_grounding else []
        return StructuredResponse(raw_json_text=response.text or "", citations=citations)

    async def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        config = None
        if system_instruction:
            config = types.GenerateContentConfig(system_instruction=system_instruction)

        response = await self._generate(self.settings.tips_model, prompt, config, "text generation")
        return response.text or ""

    def start_chat(self, system_instruction: str, prior_turns: Sequence[ChatTurn]) -> ChatSession:
        history = [_content(turn.role, turn.text) for turn in prior_turns]
        return ChatSession(self._client_factory, self.settings.chat_model, system_instruction, history)

    async def edit_image(self, image_bytes: bytes, mime_type: str, instruction: str) -> Optional[InlineImage]:
        """
        Send the image and the edit instruction in one multimodal request.
        Returns the first inline image in the response, or None when the
        model answered without one.
        """
        contents = [
            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
            types.Part.from_text(text=instruction),
        ]
        config = types.GenerateContentConfig(
            response_modalities=[types.Modality.TEXT, types.Modality.IMAGE],
        )

        response = await self._generate(self.settings.image_model, contents, config, "image edit")
        return first_inline_image(response)


def first_inline_image(response: Any) -> Optional[InlineImage]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return None

    for part in candidates[0].content.parts or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return InlineImage(data=inline.data, mime_type=inline.mime_type or "image/png")
    return None
