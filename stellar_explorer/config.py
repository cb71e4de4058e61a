import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    llm_api_key: str = os.getenv("LLM_API_KEY", "")
    llm_model: str = os.getenv("LLM_MODEL", "google/gemini-2.5-flash")
    llm_base_url: str = os.getenv("LLM_BASE_URL", "https://ai.gateway.lovable.dev/v1")
    llm_timeout_s: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "true").lower() == "true"
    enable_metrics: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"


@dataclass(frozen=True)
class ClientSettings:
    relay_url: str = os.getenv("RELAY_URL", "http://127.0.0.1:8000")
    relay_timeout_s: float = float(os.getenv("RELAY_TIMEOUT_SECONDS", "90"))


settings = Settings()
client_settings = ClientSettings()
