"""Error taxonomy for wallet operations and message delivery."""

from __future__ import annotations

GENERIC_ERROR_MESSAGE = (
    "❌ I encountered an error processing your request. Please try again."
)


class WalletBotError(Exception):
    """Base class for failures that resolve into a user-facing reply."""

    default_message = GENERIC_ERROR_MESSAGE

    def __init__(self, user_message: str | None = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class UserNotFound(WalletBotError):
    default_message = "❌ I don't know you yet. Send /start to create your wallet."


class WalletMissing(WalletBotError):
    default_message = (
        "❌ Wallet not found. Please create a wallet first using /start."
    )


class UnsupportedToken(WalletBotError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(
            f"❌ Unsupported token: {token}. "
            "Use a known ticker or a token process id."
        )


class InvalidAmount(WalletBotError):
    def __init__(self, amount: str, reason: str = "must be a positive number") -> None:
        self.amount = amount
        super().__init__(f"❌ Invalid amount '{amount}': {reason}.")


class InsufficientBalance(WalletBotError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"❌ You have no {token} to send.")


class NoRouteFound(WalletBotError):
    def __init__(self, from_token: str, to_token: str) -> None:
        super().__init__(
            f"❌ No swap route found from {from_token} to {to_token}. "
            "Try a different amount or pair."
        )


class UpstreamTimeout(WalletBotError):
    """A confirmation read failed or timed out; callers report "processing"."""

    default_message = "🔄 Still processing on the network."


class KeyVaultError(Exception):
    """Stored credential could not be decrypted or parsed."""


class TransportError(Exception):
    """Outbound delivery failed because the recipient is unreachable."""


class TransportBlocked(TransportError):
    """The user blocked the bot."""


class TransportChatNotFound(TransportError):
    """The chat no longer exists."""


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "WalletBotError",
    "UserNotFound",
    "WalletMissing",
    "UnsupportedToken",
    "InvalidAmount",
    "InsufficientBalance",
    "NoRouteFound",
    "UpstreamTimeout",
    "KeyVaultError",
    "TransportError",
    "TransportBlocked",
    "TransportChatNotFound",
]
