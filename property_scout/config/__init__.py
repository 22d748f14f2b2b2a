"""Configuration module for Property Scout."""

from .settings import (
    SCOUT_CONFIG,
    ScoutSettings,
    MatchRules,
    FxRates,
    RetryConfig,
    AIConfig,
    RankingConfig,
    RAGConfig,
    get_settings,
)

__all__ = [
    'SCOUT_CONFIG',
    'ScoutSettings',
    'MatchRules',
    'FxRates',
    'RetryConfig',
    'AIConfig',
    'RankingConfig',
    'RAGConfig',
    'get_settings',
]
