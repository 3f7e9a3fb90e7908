"""In-memory session state for the three workspaces.

One instance of each container lives in ``st.session_state`` per browser
session. Nothing here is persisted.
"""
import logging
from typing import List, Optional

from strategy_lab.models import ChatMessage, ImageHistoryEntry, KeywordQuery, KeywordResult

logger = logging.getLogger(__name__)

GREETING = ChatMessage(
    role="bot",
    text="Welcome to the Strategy Lab. I am your Gemini 3 Pro expert. How can I assist your marketing goals today?",
)


class KeywordExplorerState:
    """
    View state for the keyword explorer.

    Every analysis gets a token from :meth:`begin`; results, tips and errors
    carrying an older token are dropped so a slow response can't overwrite
    a newer query.
    """

    def __init__(self):
        self.token = 0
        self.query: Optional[KeywordQuery] = None
        self.result: Optional[KeywordResult] = None
        self.tips: Optional[str] = None
        self.error: Optional[str] = None
        self.loading = False

    def begin(self, query: KeywordQuery) -> int:
        self.token += 1
        self.query = query
        self.tips = None
        self.error = None
        self.loading = True
        return self.token

    def _is_current(self, token: int, what: str) -> bool:
        if token != self.token:
            logger.info(f"Discarding stale {what} for request {token} (latest is {self.token})")
            return False
        return True

    def apply_result(self, token: int, result: KeywordResult) -> bool:
        if not self._is_current(token, "result"):
            return False
        self.result = result
        self.loading = False
        return True

    def apply_tips(self, token: int, tips: str) -> bool:
        if not self._is_current(token, "tips"):
            return False
        self.tips = tips
        return True

    def apply_error(self, token: int, message: str) -> bool:
        if not self._is_current(token, "error"):
            return False
        self.error = message
        self.loading = False
        return True

    def reset(self):
        self.token += 1
        self.query = None
        self.result = None
        self.tips = None
        self.error = None
        self.loading = False


class ImageHistoryManager:
    def __init__(self):
        self.entries: List[ImageHistoryEntry] = []
        self.current_image: Optional[str] = None

    def load_upload(self, data_uri: str):
        """A fresh upload replaces the current image but is not an edit."""
        self.current_image = data_uri

    def record_edit(self, entry: ImageHistoryEntry):
        self.entries.insert(0, entry)
        self.current_image = entry.url

    def find(self, entry_id: str) -> Optional[ImageHistoryEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def select(self, entry_id: str) -> bool:
        entry = self.find(entry_id)
        if entry is None:
            return False
        self.current_image = entry.url
        return True


class ChatLog:
    """Append-only chat transcript that starts with the greeting."""

    def __init__(self):
        self.messages: List[ChatMessage] = [GREETING]
        self.sending = False

    def begin_send(self, text: str) -> bool:
        text = (text or "").strip()
        if not text or self.sending:
            return False
        self.messages.append(ChatMessage(role="user", text=text))
        self.sending = True
        return True

    def finish_send(self, reply: str):
        self.messages.append(ChatMessage(role="bot", text=reply))
        self.sending = False
