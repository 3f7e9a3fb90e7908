"""Keyword volume analysis and the quick-tips side channel."""
import asyncio
import logging
from typing import Callable, Optional

from google.genai import types

from strategy_lab.errors import AnalysisFailed, ProviderError
from strategy_lab.models import COMPETITION_LEVELS, TREND_POINTS, KeywordQuery, KeywordResult, Timeframe
from strategy_lab.provider import ProviderClient
from strategy_lab.validation import dedupe_sources, parse_keyword_payload

logger = logging.getLogger(__name__)

# Monthly search volume is divided by these to get the requested interval.
TIMEFRAME_DIVISORS = {
    Timeframe.DAILY: 30,
    Timeframe.WEEKLY: 4.3,
    Timeframe.MONTHLY: 1,
}

KEYWORD_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "volume": types.Schema(
            type=types.Type.NUMBER,
            description="The calculated volume for the specific interval.",
        ),
        "competition": types.Schema(type=types.Type.STRING, enum=list(COMPETITION_LEVELS)),
        "analysis": types.Schema(type=types.Type.STRING),
        "trend": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "date": types.Schema(type=types.Type.STRING),
                    "value": types.Schema(type=types.Type.NUMBER),
                },
                required=["date", "value"],
            ),
        ),
    },
    required=["volume", "competition", "analysis", "trend"],
)


def scale_monthly_volume(monthly_volume: float, timeframe) -> float:
    return monthly_volume / TIMEFRAME_DIVISORS[Timeframe(timeframe)]


def _format_divisor(divisor) -> str:
    return f"{divisor:g}"


def build_system_instruction() -> str:
    scaling_rules = "\n".join(
        f"- If '{timeframe.value}': "
        + (
            "Use MSV directly."
            if divisor == 1
            else f"Divide MSV by {_format_divisor(divisor)}."
        )
        + ' Output this as "volume".'
        for timeframe, divisor in TIMEFRAME_DIVISORS.items()
    )
    daily_example = 50
    return f"""You are a professional SEO Data Engine.
Your goal is to provide EXACT keyword volume metrics.

STEP 1: Use Google Search to find "Monthly Search Volume" (MSV) for the keyword in the specified location.
STEP 2: Apply the following SCALING RULES based on the requested timeframe:
{scaling_rules}

STEP 3: Generate {TREND_POINTS} "trend" data points.
CRITICAL: The values in the "trend" array MUST be on the same scale as your calculated "volume".
If daily volume is {daily_example}, trend values must be around {daily_example} (e.g. 45, 52, 48), NOT {daily_example * TIMEFRAME_DIVISORS[Timeframe.DAILY]:,}.

STEP 4: Respond ONLY in JSON."""


def build_analysis_prompt(query: KeywordQuery) -> str:
    return (
        f'Analyze the keyword: "{query.keyword}" for the location: "{query.location}".\n'
        f"The user specifically requested data on a {query.timeframe.value} scale.\n"
        "Calculate the precise numerical volume using search-grounded metrics."
    )


def build_tips_prompt(keyword: str) -> str:
    return f'Give me 3 punchy SEO tips for "{keyword}".'


class KeywordAnalysisOrchestrator:
    def __init__(self, provider: ProviderClient):
        self.provider = provider

    def analyze(self, keyword: str, location: str, timeframe="monthly"):
        """
        Validate the inputs now and return the awaitable analysis.

        Blank keyword or location raises ValidationError here, before a
        coroutine exists, so no request can be issued for bad input.
        """
        query = KeywordQuery.create(keyword, location, timeframe)
        return self.analyze_query(query)

    async def analyze_query(self, query: KeywordQuery) -> KeywordResult:
        logger.info(f"Analyzing '{query.keyword}' in '{query.location}' ({query.timeframe.value})")
        try:
            response = await self.provider.generate_structured(
                build_analysis_prompt(query),
                build_system_instruction(),
                KEYWORD_SCHEMA,
                enable_search_grounding=True,
            )
        except ProviderError as e:
            raise AnalysisFailed() from e

        payload = parse_keyword_payload(response.raw_json_text)
        return KeywordResult(
            keyword=query.keyword,
            location=query.location,
            sources=dedupe_sources(response.citations),
            **payload.model_dump(),
        )

    async def quick_tips(self, keyword: str) -> str:
        return await self.provider.generate_text(build_tips_prompt(keyword))

    async def run(
        self,
        query: KeywordQuery,
        on_result: Callable[[KeywordResult], None],
        on_tips: Callable[[str], None],
        on_error: Optional[Callable[[AnalysisFailed], None]] = None,
    ) -> None:
        """
        Run the analysis and the quick tips side by side.

        Tips are started first and report through ``on_tips`` whenever they
        land, before or after the main result; callers must not rely on the
        order. Tip failures are logged and dropped.
        """
        tips_task = asyncio.create_task(self._report_tips(query.keyword, on_tips))
        try:
            on_result(await self.analyze_query(query))
        except AnalysisFailed as e:
            logger.error(f"Keyword analysis failed for '{query.keyword}': {str(e)}")
            if on_error is None:
                raise
            on_error(e)
        finally:
            await tips_task

    async def _report_tips(self, keyword: str, on_tips: Callable[[str], None]) -> None:
        try:
            tips = await self.quick_tips(keyword)
        except Exception as e:
            logger.warning(f"Quick tips unavailable for '{keyword}': {str(e)}")
            return
        if tips:
            on_tips(tips)
