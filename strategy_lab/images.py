import logging
import time
from datetime import datetime

from strategy_lab.errors import EditFailed, ProviderError, ValidationError
from strategy_lab.models import ImageHistoryEntry
from strategy_lab.provider import ProviderClient
from strategy_lab.utils import decode_data_uri, to_data_uri

logger = logging.getLogger(__name__)


class ImageEditOrchestrator:
    def __init__(self, provider: ProviderClient):
        self.provider = provider
        self._last_id = 0

    def _next_id(self) -> str:
        # Millisecond clock, bumped when two edits land in the same tick.
        candidate = time.time_ns() // 1_000_000
        self._last_id = max(candidate, self._last_id + 1)
        return str(self._last_id)

    async def edit(self, current_image: str, instruction: str) -> ImageHistoryEntry:
        """
        Apply a natural-language edit to the current image and return the
        history entry for the result.
        """
        instruction = (instruction or "").strip()
        if not current_image:
            raise ValidationError("Upload an image before applying an edit.")
        if not instruction:
            raise ValidationError("Describe the edit to apply.")

        mime_type, image_bytes = decode_data_uri(current_image)
        logger.info(f"Editing {mime_type} image ({len(image_bytes)} bytes): {instruction}")

        try:
            edited = await self.provider.edit_image(image_bytes, mime_type, instruction)
        except ProviderError as e:
            raise EditFailed(f"Image edit failed: {str(e)}") from e

        if edited is None:
            logger.error(f"Edit response contained no image for instruction: {instruction}")
            raise EditFailed("The model did not return an edited image. Try rephrasing the edit.")

        return ImageHistoryEntry(
            id=self._next_id(),
            url=to_data_uri(edited.data, edited.mime_type),
            prompt=instruction,
            timestamp=datetime.now(),
        )
