"""Error taxonomy shared by the provider client, orchestrators and the UI."""


class StrategyLabError(Exception):
    """Base class for every failure the UI knows how to render."""


class ValidationError(StrategyLabError, ValueError):
    """Required user input is missing. Raised before any provider call."""


class ProviderError(StrategyLabError):
    """Network, transport or provider-side failure."""


class AnalysisFailed(StrategyLabError):
    """Keyword analysis could not produce a result."""

    default_message = "Analysis failed. Search service unreachable, please try again."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class SchemaParseError(AnalysisFailed):
    """The provider answered, but the body is not valid JSON for the declared schema."""

    default_message = (
        "Data synthesis failed. The model could not find reliable search metrics for this query."
    )


class EditFailed(StrategyLabError):
    """An image edit produced no image."""


class ChatFailed(StrategyLabError):
    """A chat turn could not be completed."""
