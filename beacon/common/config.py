"""
Configuration Management for Beacon

Loads configuration from ~/.beacon/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger("beacon.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".beacon"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 8085
    frontend_url: str = "http://localhost:3000"
    use_https: bool = False
    ssl_certfile: str = ""
    ssl_keyfile: str = ""


@dataclass
class LLMConfig:
    """LLM provider configuration for answer generation"""
    provider: str = "openai"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    temperature: float = 0.3  # Low temperature keeps answers close to the context
    max_tokens: int = 1000
    timeout: float = 60.0

    @property
    def model(self) -> str:
        """Model name for the selected provider"""
        return {
            "anthropic": self.anthropic_model,
            "openai": self.openai_model,
            "google": self.google_model,
        }.get(self.provider, "")

    @property
    def api_key(self) -> str:
        """API key for the selected provider"""
        return {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "google": self.google_api_key,
        }.get(self.provider, "")


@dataclass
class RetrievalConfig:
    """Fan-out, ranking and per-source content budgets"""
    top_k: int = 3  # Per source, controls prompt token usage
    search_limit: int = 10
    source_timeout: float = 15.0
    concurrent: bool = True
    wiki_max_chars: int = 1500
    mailbox_max_chars: int = 1200  # Emails are noisier
    chat_max_chars: int = 1000  # Chat messages are short-form


@dataclass
class SourcesConfig:
    """Provider API base URLs"""
    atlassian_api_url: str = "https://api.atlassian.com"
    gmail_api_url: str = "https://gmail.googleapis.com"
    slack_api_url: str = "https://slack.com/api"


@dataclass
class BeaconConfig:
    """Main Beacon configuration"""
    server: ServerConfig = field(default_factory=ServerConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    return ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=int(server_data.get("port", 8085)),
        frontend_url=server_data.get("frontend_url", "http://localhost:3000"),
        use_https=_parse_flag(server_data.get("use_https", False)),
        ssl_certfile=server_data.get("ssl_certfile", ""),
        ssl_keyfile=server_data.get("ssl_keyfile", ""),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "openai"),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", "claude-sonnet-4-20250514"),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", "gpt-4"),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", "gemini-2.0-flash-exp"),
        temperature=float(llm_data.get("temperature", 0.3)),
        max_tokens=int(llm_data.get("max_tokens", 1000)),
        timeout=float(llm_data.get("timeout", 60.0)),
    )


def _parse_retrieval_config(data: dict) -> RetrievalConfig:
    """Parse retrieval section from config dict"""
    retrieval_data = data.get("retrieval", {})
    return RetrievalConfig(
        top_k=int(retrieval_data.get("top_k", 3)),
        search_limit=int(retrieval_data.get("search_limit", 10)),
        source_timeout=float(retrieval_data.get("source_timeout", 15.0)),
        concurrent=_parse_flag(retrieval_data.get("concurrent", True)),
        wiki_max_chars=int(retrieval_data.get("wiki_max_chars", 1500)),
        mailbox_max_chars=int(retrieval_data.get("mailbox_max_chars", 1200)),
        chat_max_chars=int(retrieval_data.get("chat_max_chars", 1000)),
    )


def _parse_sources_config(data: dict) -> SourcesConfig:
    """Parse sources section from config dict"""
    sources_data = data.get("sources", {})
    defaults = SourcesConfig()
    return SourcesConfig(
        atlassian_api_url=sources_data.get("atlassian_api_url", defaults.atlassian_api_url),
        gmail_api_url=sources_data.get("gmail_api_url", defaults.gmail_api_url),
        slack_api_url=sources_data.get("slack_api_url", defaults.slack_api_url),
    )


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_flag(value) -> bool:
    """Boolean from a config file value; strings like "false" are read as flags"""
    if isinstance(value, str):
        return _env_flag(value)
    return bool(value)


def load_config(path: Optional[Path] = None) -> BeaconConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.beacon/config.json)
    3. Default values
    """
    config = BeaconConfig()
    config_path = path or CONFIG_PATH

    # Load from config file if exists
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)

            config.server = _parse_server_config(data)
            config.llm = _parse_llm_config(data)
            config.retrieval = _parse_retrieval_config(data)
            config.sources = _parse_sources_config(data)
        except (json.JSONDecodeError, IOError, ValueError, TypeError) as e:
            logger.warning("Failed to load config file %s: %s", config_path, e)

    # Environment variable overrides
    if os.getenv("APP_PORT"):
        config.server.port = int(os.getenv("APP_PORT"))
    if os.getenv("FRONTEND_URL"):
        config.server.frontend_url = os.getenv("FRONTEND_URL")
    if os.getenv("USE_HTTPS"):
        config.server.use_https = _env_flag(os.getenv("USE_HTTPS"))
    if os.getenv("SSL_CERTFILE"):
        config.server.ssl_certfile = os.getenv("SSL_CERTFILE")
    if os.getenv("SSL_KEYFILE"):
        config.server.ssl_keyfile = os.getenv("SSL_KEYFILE")

    _env_llm_map = {
        "BEACON_LLM_PROVIDER": "provider",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)

    if os.getenv("BEACON_SOURCE_TIMEOUT"):
        config.retrieval.source_timeout = float(os.getenv("BEACON_SOURCE_TIMEOUT"))
    if os.getenv("BEACON_TOP_K"):
        config.retrieval.top_k = int(os.getenv("BEACON_TOP_K"))
    if os.getenv("BEACON_SEARCH_LIMIT"):
        config.retrieval.search_limit = int(os.getenv("BEACON_SEARCH_LIMIT"))

    config.llm.provider = config.llm.provider.lower()
    if not config.llm.api_key:
        logger.warning("API key for LLM provider '%s' not set", config.llm.provider)

    return config
