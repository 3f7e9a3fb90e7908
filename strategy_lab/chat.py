import logging
from typing import List, Sequence

from strategy_lab.errors import ChatFailed, ProviderError
from strategy_lab.memory_manager import ChatLog
from strategy_lab.models import ChatMessage, ChatTurn
from strategy_lab.provider import ProviderClient

logger = logging.getLogger(__name__)

STRATEGIST_PERSONA = (
    "You are a senior digital marketing strategist. "
    "Provide actionable advice based on search data."
)
EMPTY_REPLY = "I apologize, I encountered an issue processing that."
CONNECTION_LOST = "Expert connection lost. Please check your network."

_PROVIDER_ROLES = {"user": "user", "bot": "model"}


def build_history(log: Sequence[ChatMessage]) -> List[ChatTurn]:
    """Provider-visible history: drop the greeting and the message being sent."""
    return [ChatTurn(role=_PROVIDER_ROLES[m.role], text=m.text) for m in log[1:-1]]


class ChatOrchestrator:
    def __init__(self, provider: ProviderClient):
        self.provider = provider

    async def send(self, log: Sequence[ChatMessage], new_message: str) -> str:
        history = build_history(log)
        session = self.provider.start_chat(STRATEGIST_PERSONA, history)
        try:
            reply = await session.send(new_message)
        except ProviderError as e:
            raise ChatFailed(str(e)) from e
        return reply or EMPTY_REPLY


async def run_turn(chat: ChatOrchestrator, log: ChatLog, text: str) -> bool:
    """
    Submit one message from the chat widget.

    Returns False when nothing was sent (blank input or a reply is still
    pending). Any failed turn appends the connection-lost message instead of
    raising, so the log always returns to idle.
    """
    if not log.begin_send(text):
        return False
    try:
        reply = await chat.send(log.messages, log.messages[-1].text)
    except Exception as e:
        logger.error(f"Chat turn failed: {str(e)}")
        reply = CONNECTION_LOST
    log.finish_send(reply)
    return True
