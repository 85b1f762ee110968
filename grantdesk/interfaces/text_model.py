"""Abstract base class for text-generation models.

A text model is a single named model behind a uniform
``invoke(prompt) -> text`` call.  The
:class:`~grantdesk.services.analysis_client.AnalysisClient` holds an ordered
list of these and falls back from one to the next, so adding a model is a
configuration change, not a code change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAITextModel - chat completions on any OpenAI-compatible endpoint
#                     (Gemini gemini-2.5-flash / gemini-1.5-flash by default)
# Located in: grantdesk/providers/llm/
class ITextAnalysisModel(ABC):
    """Contract for one text-generation model."""

    @abstractmethod
    async def invoke(self, prompt: str) -> str:
        """Send *prompt* and return the model's text response.

        Raises
        ------
        grantdesk.utils.errors.RateLimitError
            The provider answered with a rate-limit signal.
        grantdesk.utils.errors.ModelInvocationError
            Any other failure, including an empty response.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """The model identifier sent to the provider, e.g. ``"gemini-2.5-flash"``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable provider identifier."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
