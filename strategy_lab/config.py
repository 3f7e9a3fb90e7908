import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_ANALYSIS_MODEL = "gemini-3-flash-preview"
DEFAULT_CHAT_MODEL = "gemini-3-pro-preview"
DEFAULT_TIPS_MODEL = "gemini-flash-lite-latest"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_THINKING_BUDGET = 8000


@dataclass(frozen=True)
class Settings:
    api_key: str
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    tips_model: str = DEFAULT_TIPS_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    thinking_budget: int = DEFAULT_THINKING_BUDGET
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment and an optional .env file."""
        load_dotenv()

        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        if not api_key:
            raise EnvironmentError("GEMINI_API_KEY environment variable is not set")

        return cls(
            api_key=api_key,
            analysis_model=os.getenv("STRATEGY_LAB_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
            chat_model=os.getenv("STRATEGY_LAB_CHAT_MODEL", DEFAULT_CHAT_MODEL),
            tips_model=os.getenv("STRATEGY_LAB_TIPS_MODEL", DEFAULT_TIPS_MODEL),
            image_model=os.getenv("STRATEGY_LAB_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            thinking_budget=int(os.getenv("STRATEGY_LAB_THINKING_BUDGET", DEFAULT_THINKING_BUDGET)),
            log_level=os.getenv("STRATEGY_LAB_LOG_LEVEL", "INFO").upper(),
        )
