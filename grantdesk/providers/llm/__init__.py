"""Text model implementations."""

from grantdesk.providers.llm.openai_text_model import OpenAITextModel, build_client

__all__ = ["OpenAITextModel", "build_client"]
