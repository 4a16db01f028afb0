"""Provider adapter implementations.

Importing this package registers every bundled adapter with
``provider_registry``.
"""

from imagegate.core.adapters.huggingface import HuggingFaceAdapter
from imagegate.core.adapters.stability import StabilityAdapter

__all__ = ["HuggingFaceAdapter", "StabilityAdapter"]
