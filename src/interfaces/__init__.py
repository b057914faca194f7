"""Abstract seams between the pairing logic and external services.

Adapters for each interface live under ``src/providers/``:

    ILLMProvider        OpenAI / OpenAI-compatible, Anthropic, Ollama
    IEmbeddingProvider  OpenAI, HuggingFace Inference API, sentence-transformers
    IVectorIndex        InMemoryVectorIndex (numpy)
"""

from src.interfaces.embedding_provider import DistanceMetric, IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_index import IVectorIndex

__all__ = [
    "DistanceMetric",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IVectorIndex",
]
