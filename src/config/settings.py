"""Environment-driven settings (pydantic-settings).

Each field is read from the upper-cased environment variable of the same
name, or from ``.env`` in the working directory. A blank API key means that
backend is switched off.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Generation. Tried in order: OpenAI, Anthropic, Ollama.
    openai_api_key: str = ""
    openai_base_url: str = ""
    llm_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"

    # Embeddings. Tried in order: OpenAI, HuggingFace, local model.
    openai_embedding_model: str = "text-embedding-3-small"
    huggingface_api_key: str = ""
    huggingface_base_url: str = "https://api-inference.huggingface.co"
    huggingface_embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    local_embedding_model: str = "all-MiniLM-L6-v2"

    # Recipe retrieval
    documents_dir: str = "./pdfs"
    rag_enabled: bool = False
    rag_top_k: int = 5

    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        configured = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "ollama": self.ollama_base_url,
        }
        return [name for name, value in configured.items() if value]

    def get_available_embedding_providers(self) -> list[str]:
        """Configured embedding backends, local model last.

        The local model is always listed; whether sentence-transformers is
        installed is only checked when ingestion picks a backend.
        """
        names = [
            name
            for name, key in (("openai", self.openai_api_key), ("huggingface", self.huggingface_api_key))
            if key
        ]
        return [*names, "sentence_transformers"]
