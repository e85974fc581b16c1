import os
from typing import Any, Dict

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL_NAME = "gpt-5-mini"


class AISettings:
    """Helper exposing typed accessors for the ``ai_settings`` section.

    The section configures the OpenAI-compatible classification service:
    where it lives, which model to ask, and how long a single request may
    take before the message is treated as clean.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data

    @property
    def base_url(self) -> str:
        return str(self.data.get("base_url") or DEFAULT_BASE_URL)

    @property
    def api_key_env(self) -> str:
        return str(self.data.get("api_key_env") or "OPENAI_API_KEY")

    @property
    def api_key(self) -> str | None:
        """API key read from the environment variable named by ``api_key_env``."""
        return os.getenv(self.api_key_env) or None

    @property
    def model_name(self) -> str:
        return str(self.data.get("model_name") or DEFAULT_MODEL_NAME)

    @property
    def request_timeout_seconds(self) -> float:
        return float(self.data.get("request_timeout_seconds", 20.0))

    @property
    def max_completion_tokens(self) -> int:
        return int(self.data.get("max_completion_tokens", 500))

    @property
    def max_concurrent_classifications(self) -> int:
        return max(1, int(self.data.get("max_concurrent_classifications", 8)))

    @property
    def prompt_template(self) -> str | None:
        val = self.data.get("prompt_template")
        return str(val) if val else None
