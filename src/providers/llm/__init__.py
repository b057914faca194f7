"""ILLMProvider adapters, in the order src/main.py tries them.

OpenAI (or an OpenAI-compatible host), then Anthropic, then a local Ollama
server. SDK exceptions become ProviderError subclasses via
error_mapping.classify_api_error.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider", "OllamaLLMProvider"]
