"""Exception types shared across the bot.

Adapter errors describe failures of external collaborators (model, video
search, session storage). Components catch them at the call site and apply
their own degrade policy; they never reach the chat transport.
"""

from src.utils.config import config
from src.utils.logger import logger


class AdapterError(Exception):
    """Base class for failures of an external collaborator."""


class GenerationError(AdapterError):
    """Generative model call failed or returned no text."""


class VideoSearchError(AdapterError):
    """Video search request failed."""


class SessionStorageError(AdapterError):
    """Session backend could not read or write a key."""


class InvalidCommandError(ValueError):
    """Transport payload could not be decoded into a command."""


class SessionContractError(RuntimeError):
    """Session is missing a field its current step requires."""


def contract_violation(message: str, strict: bool | None = None) -> None:
    """Report a programming-contract violation.

    Raises in strict mode (tests); otherwise logs an error so the caller can
    continue with safe defaults.

    Args:
        message: Description of the violated contract.
        strict: Override for ``config.STRICT_CONTRACTS``.

    Raises:
        SessionContractError: When strict mode is enabled.
    """
    if config.STRICT_CONTRACTS if strict is None else strict:
        raise SessionContractError(message)
    logger.error(f"Session contract violation: {message}")
