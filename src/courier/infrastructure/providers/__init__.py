"""Provider-specific helpers (target normalization)."""

from courier.infrastructure.providers.targets import (
    known_providers,
    normalize_target_for_provider,
    register_target_normalizer,
)

__all__ = [
    "known_providers",
    "normalize_target_for_provider",
    "register_target_normalizer",
]
