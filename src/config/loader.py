"""Layered configuration: built-in defaults, then ``config.yaml``, then env.

Tunables such as chunk sizes, retry budget and sampling temperatures live in
YAML. Keys, endpoints and feature switches come from :class:`Settings`,
which wins where the two overlap::

    defaults  {"rag": {"top_k": 5, "context_chunks": 3}}
    yaml      {"rag": {"top_k": 8}}
    env       {"rag": {"enabled": True, "top_k": 4}}
    result    {"rag": {"top_k": 4, "context_chunks": 3, "enabled": True}}
"""

import copy
from pathlib import Path

import yaml

from src.config.settings import Settings

DEFAULT_CONFIG: dict = {
    "chunking": {"max_size": 800, "overlap": 150},
    "ingestion": {"max_attempts": 3, "retry_delay": 2.0, "retry_jitter": 0.0},
    "pipeline": {"max_steps": 10},
    "generation": {
        "recommender": {"temperature": 0.7, "max_tokens": 2000},
        "pairing": {"temperature": 0.7, "max_tokens": 3000},
    },
    "rag": {"top_k": 5, "context_chunks": 3},
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Return the merged configuration dict.

    A missing or empty YAML file is not an error; the defaults stand in.
    ``settings`` is read from the environment when not supplied.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    yaml_path = Path(path)
    if yaml_path.is_file():
        _deep_merge(config, yaml.safe_load(yaml_path.read_text(encoding="utf-8")) or {})

    _deep_merge(config, _from_settings(settings or Settings()))
    return config


def _from_settings(settings: Settings) -> dict:
    return {
        "app": {"env": settings.app_env},
        "logging": {"level": settings.log_level},
        "llm": {
            "model": settings.llm_model,
            "available_providers": settings.get_available_llm_providers(),
        },
        "embedding": {"available_providers": settings.get_available_embedding_providers()},
        "rag": {
            "enabled": settings.rag_enabled,
            "top_k": settings.rag_top_k,
            "documents_dir": settings.documents_dir,
        },
    }


def _deep_merge(target: dict, layer: dict) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        else:
            target[key] = value
