"""Shared pytest fixtures for the pairing engine test suite."""

from __future__ import annotations

import hashlib
import json
import math
import re
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import RAGError

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-words hashing embedder.

    Texts sharing words get similar vectors, which is enough for retrieval
    ordering tests.  ``fail_times`` makes the first N ``embed`` calls raise
    :class:`RAGError`.
    """

    def __init__(
        self,
        dimension: int = 32,
        name: str = "fake_embedding",
        available: bool = True,
        fail_times: int = 0,
    ) -> None:
        self._dimension = dimension
        self._name = name
        self._available = available
        self._fail_times = fail_times
        self.embed_calls = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls += 1
        if self.embed_calls <= self._fail_times:
            raise RAGError(message="embedding backend down", provider_name=self._name)
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            vector[digest[0] % self._dimension] += 1.0
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's .env file."""
    values: dict[str, Any] = {
        "openai_api_key": "",
        "anthropic_api_key": "",
        "huggingface_api_key": "",
        "openai_base_url": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# Sample generation output
# ---------------------------------------------------------------------------

DISHES = [
    {
        "id": "dish-1",
        "name": "Whiskey Glazed Chicken",
        "description": "Pan-seared chicken with a whiskey and lemon glaze.",
        "cuisine": "American",
        "requiredIngredients": ["2 chicken thighs", "30ml whiskey", "1 lemon"],
        "cookingTime": 35,
        "difficulty": 2,
        "steps": ["Season the chicken", "Sear until golden", "Deglaze with whiskey and lemon"],
        "tags": ["weeknight"],
    },
    {
        "id": "dish-2",
        "name": "Lemon Whiskey Cured Salmon",
        "description": "Salmon cured with citrus zest and a splash of whiskey.",
        "cuisine": "Nordic",
        "requiredIngredients": ["300g salmon", "1 lemon", "20ml whiskey", "salt", "sugar"],
        "cookingTime": 20,
        "difficulty": 3,
        "steps": ["Mix the cure", "Cover the salmon", "Chill for 24 hours"],
    },
]

PAIRING = {
    "beverages": [
        {
            "id": "bev-1",
            "name": "Whiskey Sour",
            "description": "Bright, foamy sour.",
            "ingredients": ["45ml bourbon", "25ml lemon juice", "15ml sugar syrup"],
            "steps": ["Shake hard with ice", "Strain into a chilled glass"],
            "category": "sour",
            "glassType": "coupe",
            "technique": "shake",
            "garnish": "lemon twist",
            "difficulty": 2,
            "estimatedTime": 4,
        }
    ],
    "pairingReasons": [
        {
            "id": "reason-1",
            "dishId": "dish-1",
            "beverageId": "bev-1",
            "reason": "The acidity cuts through the glaze.",
            "pairingType": "contrast",
            "score": 8,
        }
    ],
    "overallSuggestion": "Serve the sour alongside the chicken.",
}


@pytest.fixture
def dish_response() -> str:
    return "Here are some ideas:\n```json\n" + json.dumps(DISHES, ensure_ascii=False) + "\n```"


@pytest.fixture
def pairing_response() -> str:
    return json.dumps(PAIRING, ensure_ascii=False)


@pytest.fixture
def sample_recipe_text() -> str:
    return (
        "Whiskey Sour\n"
        "A classic sour from the golden age of cocktails.\n"
        "\n"
        "Ingredients:\n"
        "- 45ml bourbon\n"
        "- 25ml fresh lemon juice\n"
        "- 15ml sugar syrup\n"
        "- 1 egg white\n"
        "\n"
        "Method:\n"
        "1. Dry shake all ingredients without ice.\n"
        "2. Shake again hard with ice.\n"
        "3. Strain into a chilled coupe and garnish with a lemon twist.\n"
        "\n"
        "Tips: the dry shake builds a thicker foam.\n"
    )


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider; set ``complete.side_effect`` per test."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.get_model_name.return_value = "mock-model"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="[]")
    return mock


@pytest.fixture
def fake_embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def recipe_dir(tmp_path: Path, sample_recipe_text: str) -> Path:
    """A documents directory with two text recipes and one ignored file."""
    docs = tmp_path / "pdfs"
    docs.mkdir()
    (docs / "whiskey_sour.txt").write_text(sample_recipe_text, encoding="utf-8")
    (docs / "mojito.md").write_text(
        "Mojito\n"
        "A refreshing tropical highball.\n"
        "\n"
        "Ingredients:\n"
        "- 50ml white rum\n"
        "- 6 mint leaves\n"
        "- 20ml lime juice\n"
        "- soda water\n"
        "\n"
        "Method:\n"
        "1. Muddle mint with lime and sugar.\n"
        "2. Add rum and ice, top with soda.\n",
        encoding="utf-8",
    )
    (docs / "notes.csv").write_text("not,a,recipe\n", encoding="utf-8")
    return docs
