from .loader import load_config
from .models import (
    AISettings,
    DocMirrorConfig,
    GitHubAppConfig,
    StorageConfig,
    TranslationConfig,
)

__all__ = [
    "AISettings",
    "DocMirrorConfig",
    "GitHubAppConfig",
    "StorageConfig",
    "TranslationConfig",
    "load_config",
]
