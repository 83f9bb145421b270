"""
Runtime configuration for the NDPA agent.

Values come from the environment (a .env file is loaded by entry points via
python-dotenv). Defaults target Groq's OpenAI-compatible endpoint.
"""

import os
from dataclasses import dataclass, field

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "moonshotai/kimi-k2-instruct-0905"


def _split_origins(value: str) -> list[str]:
    return [o.strip() for o in value.split(",") if o.strip()]


@dataclass
class AgentConfig:
    """Paths, model selection and service limits."""
    document_path: str = "ndpa_structured.json"
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_api_key: str = ""
    llm_model: str = DEFAULT_LLM_MODEL
    llm_timeout: float = 120.0
    max_steps: int = 5
    scorer_sampling_rate: float = 1.0
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Build a config from environment variables, falling back to defaults."""
        return cls(
            document_path=os.getenv("NDPA_DOCUMENT_PATH", "ndpa_structured.json"),
            llm_base_url=os.getenv("LLM_BASE_URL", DEFAULT_LLM_BASE_URL),
            llm_api_key=os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL),
            llm_timeout=float(os.getenv("LLM_TIMEOUT", "120")),
            max_steps=int(os.getenv("AGENT_MAX_STEPS", "5")),
            scorer_sampling_rate=float(os.getenv("SCORER_SAMPLING_RATE", "1.0")),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
