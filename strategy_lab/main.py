import logging
from dataclasses import dataclass
from typing import Optional

from strategy_lab.chat import ChatOrchestrator
from strategy_lab.config import Settings
from strategy_lab.images import ImageEditOrchestrator
from strategy_lab.keywords import KeywordAnalysisOrchestrator
from strategy_lab.provider import ProviderClient

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class StrategyLab:
    keywords: KeywordAnalysisOrchestrator
    images: ImageEditOrchestrator
    chat: ChatOrchestrator


def build_lab(settings: Settings, provider: Optional[ProviderClient] = None) -> StrategyLab:
    """Wire the orchestrators around one provider client."""
    provider = provider or ProviderClient(settings)
    logger.info(
        f"Strategy Lab ready (analysis={settings.analysis_model}, chat={settings.chat_model}, "
        f"tips={settings.tips_model}, image={settings.image_model})"
    )
    return StrategyLab(
        keywords=KeywordAnalysisOrchestrator(provider),
        images=ImageEditOrchestrator(provider),
        chat=ChatOrchestrator(provider),
    )
