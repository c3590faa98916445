from .chat import (
    ChatProvider,
    ChatRateLimitError,
    ChatServiceError,
    GeminiChatProvider,
    RetryPolicy,
    get_chat_provider,
)

__all__ = [
    "ChatProvider",
    "ChatRateLimitError",
    "ChatServiceError",
    "GeminiChatProvider",
    "RetryPolicy",
    "get_chat_provider",
]
