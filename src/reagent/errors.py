"""Error classification surfaced to callers of ``Agent.run()``."""

from __future__ import annotations

from enum import StrEnum


class AgentErrorCode(StrEnum):
    """Stable, enumerable error codes for presentation layers to translate."""

    NO_PROVIDER = "no_provider"
    MAX_ITERATIONS = "max_iterations"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_TRANSIENT = "provider_transient"
    PROVIDER_FAILED = "provider_failed"
    HISTORY_INVARIANT = "history_invariant"


class AgentError(Exception):
    """Base class for all errors raised by the agent core."""

    code: AgentErrorCode = AgentErrorCode.PROVIDER_FAILED

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NoProviderError(AgentError):
    """Raised when ``run()`` is called before a provider has been configured."""

    code = AgentErrorCode.NO_PROVIDER

    def __init__(self) -> None:
        super().__init__("No LLM provider configured.")


class MaxIterationsError(AgentError):
    """Raised when the model keeps requesting tools past the iteration ceiling."""

    code = AgentErrorCode.MAX_ITERATIONS

    def __init__(self, iterations: int) -> None:
        super().__init__(
            f"Maximum iterations reached ({iterations}). The agent may be stuck in a loop."
        )
        self.iterations = iterations


class ProviderError(AgentError):
    """A provider call failed in a way that is not worth retrying."""

    code = AgentErrorCode.PROVIDER_FAILED

    def __init__(self, provider: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{provider}: {message}", cause)
        self.provider = provider


class ProviderUnavailableError(ProviderError):
    """The provider reports itself unavailable (e.g. model not downloaded, no API key)."""

    code = AgentErrorCode.PROVIDER_UNAVAILABLE


class ProviderTransientError(ProviderError):
    """Rate limiting, timeouts and dropped connections. Retried with backoff."""

    code = AgentErrorCode.PROVIDER_TRANSIENT

    def __init__(
        self,
        provider: str,
        message: str,
        cause: BaseException | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(provider, message, cause)
        self.retry_after = retry_after


class HistoryInvariantError(AgentError):
    """A turn would break the ordering invariants of the conversation history."""

    code = AgentErrorCode.HISTORY_INVARIANT
