"""Custom exception hierarchy for botbuilder.

Separates the three failure families a bot can hit: startup usage
errors, configuration problems, and transport failures raised by the
wrapped client library. Command handler errors are not wrapped; they
propagate as whatever the handler raised.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for recovery decisions."""
    TRANSIENT = "transient"          # Connection drops, gateway hiccups
    PERMANENT = "permanent"          # Bad token, bad input
    INFRASTRUCTURE = "infrastructure"  # Config or environment issues


class BotBuilderError(Exception):
    """Base exception for all botbuilder errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification for recovery decisions.
        module: Originating module name (e.g. "bot", "config").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


class ConfigurationError(BotBuilderError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues won't resolve
    by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )


class UsageError(BotBuilderError):
    """The program was started with missing or malformed arguments.

    Attributes:
        usage: The usage line to show the operator.
        exit_code: Process exit status to use.
    """

    def __init__(
        self,
        message: str = "",
        *,
        usage: str = "",
        exit_code: int = 1,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.usage = usage
        self.exit_code = exit_code
        super().__init__(
            message,
            category=ErrorCategory.PERMANENT,
            module=module or "main",
            **context,
        )


class TransportError(BotBuilderError):
    """Failure reported by the wrapped chat client.

    Never raised out of Bot.start(); instances are delivered to
    listeners through the ``error`` event instead.

    Attributes:
        code: WebSocket close code, when the failure was a close.
    """

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.code = code
        super().__init__(
            message, category=category, module=module or "bot", **context
        )
