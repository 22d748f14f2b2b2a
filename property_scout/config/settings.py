"""Configuration settings for Property Scout."""

from dataclasses import dataclass
import os


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class MatchRules:
    """Price tolerances and search radii for strict and near-miss matching."""
    exact_tolerance_percent: float = 0.02
    exact_tolerance_absolute_eur: float = 50.0
    near_miss_tolerance_percent: float = 0.10
    near_miss_tolerance_absolute_eur: float = 200.0
    strict_radius_km: float = 50.0
    near_miss_radius_km: float = 50.0


@dataclass
class FxRates:
    """Static exchange rates into EUR."""
    usd_eur: float = 0.92
    gbp_eur: float = 1.17


@dataclass
class RetryConfig:
    """Retry and timeout policy for a single AI backend call."""
    max_retries: int = 3
    initial_timeout_ms: int = 30000
    timeout_multiplier: float = 1.5
    backoff_base_seconds: float = 1.0

    def get_timeout(self, attempt: int) -> int:
        """Timeout in milliseconds for a 0-indexed attempt."""
        return int(self.initial_timeout_ms * (self.timeout_multiplier ** attempt))

    def get_backoff_delay(self, attempt: int) -> float:
        """Delay in seconds before retrying after a 0-indexed attempt."""
        return self.backoff_base_seconds * (2 ** attempt)


@dataclass
class AIConfig:
    """AI backend credentials, endpoints and models."""
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    groq_url: str = "https://api.groq.com/openai/v1/chat/completions"
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.3"
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    temperature: float = 0.7
    probe_timeout_seconds: float = 2.0
    parse_timeout_seconds: float = 30.0


@dataclass
class RankingConfig:
    """Relevance ranking policy."""
    batch_size: int = 8
    max_listings_for_ai: int = 100
    analysis_timeout_seconds: float = 60.0
    detailed_analysis_threshold: int = 20
    enable_ai_analysis: bool = True


@dataclass
class RAGConfig:
    """Vector store location and embedding backend."""
    data_dir: str = "./data/rag"
    store_name: str = "property-assistant"
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"
    embedding_url: str = "https://api.openai.com/v1/embeddings"
    embedding_timeout_seconds: float = 30.0
    max_context_tokens: int = 2000


@dataclass
class ScoutSettings:
    """Main application settings."""
    mock_data: bool = False
    match_rules: MatchRules = None
    fx_rates: FxRates = None
    retry_config: RetryConfig = None
    ai_config: AIConfig = None
    ranking_config: RankingConfig = None
    rag_config: RAGConfig = None

    def __post_init__(self):
        """Initialize nested configs if not provided."""
        if self.match_rules is None:
            self.match_rules = MatchRules()
        if self.fx_rates is None:
            self.fx_rates = FxRates()
        if self.retry_config is None:
            self.retry_config = RetryConfig()
        if self.ai_config is None:
            self.ai_config = AIConfig()
        if self.ranking_config is None:
            self.ranking_config = RankingConfig()
        if self.rag_config is None:
            self.rag_config = RAGConfig()


# Default configuration, overridable through the environment
SCOUT_CONFIG = {
    "mock_data": _to_bool(os.getenv("MOCK_DATA", "false")),
    "match_rules": {
        "exact_tolerance_percent": float(os.getenv("EXACT_TOLERANCE_PERCENT", "0.02")),
        "exact_tolerance_absolute_eur": float(os.getenv("EXACT_TOLERANCE_ABSOLUTE_EUR", "50")),
        "near_miss_tolerance_percent": float(os.getenv("NEAR_MISS_TOLERANCE_PERCENT", "0.10")),
        "near_miss_tolerance_absolute_eur": float(os.getenv("NEAR_MISS_TOLERANCE_ABSOLUTE_EUR", "200")),
        "strict_radius_km": float(os.getenv("STRICT_RADIUS_KM", "50")),
        "near_miss_radius_km": float(os.getenv("NEAR_MISS_RADIUS_KM", "50")),
    },
    "fx_rates": {
        "usd_eur": float(os.getenv("FX_RATE_USD_EUR", "0.92")),
        "gbp_eur": float(os.getenv("FX_RATE_GBP_EUR", "1.17")),
    },
    "retry_config": {
        "max_retries": int(os.getenv("AI_MAX_RETRIES", "3")),
        "initial_timeout_ms": int(os.getenv("AI_TIMEOUT_MS", "30000")),
        "timeout_multiplier": float(os.getenv("AI_TIMEOUT_MULTIPLIER", "1.5")),
        "backoff_base_seconds": float(os.getenv("AI_BACKOFF_BASE_SECONDS", "1.0")),
    },
    "ai_config": {
        "groq_api_key": os.getenv("GROQ_API_KEY", ""),
        "groq_model": os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
        "ollama_url": os.getenv("OLLAMA_URL", "http://localhost:11434"),
        "ollama_model": os.getenv("OLLAMA_MODEL", "llama3.3"),
        "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY", ""),
        "claude_model": os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514"),
    },
    "ranking_config": {
        "batch_size": int(os.getenv("RANKING_BATCH_SIZE", "8")),
        "max_listings_for_ai": int(os.getenv("RANKING_MAX_LISTINGS_FOR_AI", "100")),
        "analysis_timeout_seconds": float(os.getenv("RANKING_TIMEOUT_SECONDS", "60")),
        "detailed_analysis_threshold": int(os.getenv("RANKING_DETAILED_THRESHOLD", "20")),
        "enable_ai_analysis": _to_bool(os.getenv("ENABLE_AI_ANALYSIS", "true")),
    },
    "rag_config": {
        "data_dir": os.getenv("RAG_DATA_DIR", "./data/rag"),
        "store_name": os.getenv("RAG_STORE_NAME", "property-assistant"),
        "openai_api_key": os.getenv("OPENAI_API_KEY", ""),
        "embedding_model": os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
        "embedding_timeout_seconds": float(os.getenv("EMBEDDING_TIMEOUT_SECONDS", "30")),
        "max_context_tokens": int(os.getenv("RAG_MAX_CONTEXT_TOKENS", "2000")),
    },
}


def get_settings() -> ScoutSettings:
    """Get application settings from configuration."""
    return ScoutSettings(
        mock_data=SCOUT_CONFIG["mock_data"],
        match_rules=MatchRules(**SCOUT_CONFIG["match_rules"]),
        fx_rates=FxRates(**SCOUT_CONFIG["fx_rates"]),
        retry_config=RetryConfig(**SCOUT_CONFIG["retry_config"]),
        ai_config=AIConfig(**SCOUT_CONFIG["ai_config"]),
        ranking_config=RankingConfig(**SCOUT_CONFIG["ranking_config"]),
        rag_config=RAGConfig(**SCOUT_CONFIG["rag_config"]),
    )
