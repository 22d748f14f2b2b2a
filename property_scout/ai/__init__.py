"""AI completion backends and the failover gateway."""

from .backends import AIBackend, GroqBackend, OllamaBackend, ClaudeBackend, build_default_backends
from .gateway import AIGateway, AIHealth, BackendStatus, SwitchResult
from .json_extract import extract_json_array, extract_json_object

__all__ = [
    'AIBackend',
    'GroqBackend',
    'OllamaBackend',
    'ClaudeBackend',
    'build_default_backends',
    'AIGateway',
    'AIHealth',
    'BackendStatus',
    'SwitchResult',
    'extract_json_array',
    'extract_json_object',
]
