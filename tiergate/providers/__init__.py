"""tiergate provider layer.

The provider layer is the only way the local model is called. Triage and
decomposition go through the ChatClient interface; LiteLLMChatClient is
the shipped implementation.
"""

from tiergate.providers.base import ChatClient, LocalModelError
from tiergate.providers.litellm_provider import (
    LiteLLMChatClient,
    extract_response_from_thinking,
)

__all__ = [
    "ChatClient",
    "LiteLLMChatClient",
    "LocalModelError",
    "extract_response_from_thinking",
]
