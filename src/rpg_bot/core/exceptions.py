"""Custom exception hierarchy for the RPG bot.

Errors fall into four families so the transport can decide how to surface
them:

* ``ValidationError``: the actor asked for something the rules forbid
  (budget exceeded, slot occupied, level too low). Shown verbatim, state
  unchanged, the actor may retry.
* ``ProtocolError``: the request does not fit the current conversation
  (event not valid in this step, no active session, duplicate start).
* ``PersistenceError``: a storage collaborator failed.
* ``MalformedEventError`` / ``InvariantViolationError``: programmer errors.

Example:
    >>> from rpg_bot.core.exceptions import AttributeBudgetError
    >>> raise AttributeBudgetError("Not enough points", ability="strength")
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class RpgBotError(Exception):
    """Base exception for all RPG bot errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# User-Correctable Validation Errors
# =============================================================================


class ValidationError(RpgBotError):
    """Raised when a request breaks a game rule the actor can correct.

    The state of the session or character is left untouched.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class AttributeBudgetError(ValidationError):
    """Raised when a point-buy adjustment would break the budget or bounds."""

    def __init__(
        self,
        message: str,
        *,
        ability: str | None = None,
        remaining: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize budget error with the ability and remaining points.

        Args:
            message: Human-readable error description.
            ability: The ability being adjusted.
            remaining: Points remaining in the budget.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if remaining is not None:
            combined_details["remaining"] = remaining
        super().__init__(message, field_name=ability, details=combined_details)


class InvalidChoiceError(ValidationError):
    """Raised for an unknown or disallowed class, background or skill."""


class InventoryError(ValidationError):
    """Raised when an inventory operation breaks capacity or quantity rules."""

    def __init__(
        self,
        message: str,
        *,
        item_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize inventory error with the item involved.

        Args:
            message: Human-readable error description.
            item_name: Name of the item involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if item_name:
            combined_details["item_name"] = item_name
        super().__init__(message, details=combined_details)


class EquipFailure(StrEnum):
    """Reason codes for a rejected equip request."""

    NOT_IN_INVENTORY = "not_in_inventory"
    ALREADY_EQUIPPED = "already_equipped"
    NOT_EQUIPPED = "not_equipped"
    EQUIPMENT_FULL = "equipment_full"
    INVENTORY_FULL = "inventory_full"
    NOT_EQUIPPABLE = "not_equippable"
    LEVEL_TOO_LOW = "level_too_low"
    CLASS_NOT_ALLOWED = "class_not_allowed"
    ITEM_TYPE_NOT_ALLOWED = "item_type_not_allowed"


class EquipmentError(ValidationError):
    """Raised when an item cannot be equipped or unequipped."""

    def __init__(
        self,
        message: str,
        *,
        reason: EquipFailure,
        item_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize equipment error with a reason code.

        Args:
            message: Human-readable error description.
            reason: Machine-readable failure reason.
            item_name: Name of the item involved.
            details: Optional dictionary containing additional error context.
        """
        self.reason = reason
        combined_details = details or {}
        combined_details["reason"] = reason.value
        if item_name:
            combined_details["item_name"] = item_name
        super().__init__(message, details=combined_details)


class InsufficientGoldError(ValidationError):
    """Raised when a character cannot afford a purchase."""


class InvalidAmountError(ValidationError):
    """Raised for negative experience, damage, healing or gold amounts."""


# =============================================================================
# Protocol Errors
# =============================================================================


class ProtocolError(RpgBotError):
    """Base exception for requests that do not fit the conversation state.

    These are kept apart from validation errors so a transport can choose
    not to render them as gameplay feedback.
    """


class InvalidTransitionError(ProtocolError):
    """Raised when an event is not accepted by the session's current step."""

    def __init__(
        self,
        message: str,
        *,
        current_step: str | None = None,
        event_kind: str | None = None,
        expected_events: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize transition error with step context.

        Args:
            message: Human-readable error description.
            current_step: The step the session is in.
            event_kind: The rejected event kind.
            expected_events: Event kinds the step would accept.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_step:
            combined_details["current_step"] = current_step
        if event_kind:
            combined_details["event_kind"] = event_kind
        if expected_events:
            combined_details["expected_events"] = expected_events
        super().__init__(message, details=combined_details)


class NoActiveSessionError(ProtocolError):
    """Raised when an actor sends a wizard event without an active session."""


class SessionAlreadyActiveError(ProtocolError):
    """Raised when an actor tries to start a second creation session."""


class CharacterAlreadyExistsError(ProtocolError):
    """Raised when an actor already owns an active character in the scope."""


class CharacterNotFoundError(ProtocolError):
    """Raised when a gameplay command targets an actor with no character."""


# =============================================================================
# Collaborator & Programmer Errors
# =============================================================================


class PersistenceError(RpgBotError):
    """Raised when the persistence collaborator fails.

    This wraps driver-level errors so callers only handle one type.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize persistence error with the failed operation.

        Args:
            message: Human-readable error description.
            operation: Name of the gateway operation that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if operation:
            combined_details["operation"] = operation
        super().__init__(message, details=combined_details)


class MalformedEventError(RpgBotError):
    """Raised when a transport event id or payload cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        event_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize malformed event error.

        Args:
            message: Human-readable error description.
            event_id: The raw event id received from the transport.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if event_id is not None:
            combined_details["event_id"] = event_id
        super().__init__(message, details=combined_details)


class InvariantViolationError(RpgBotError):
    """Raised when a character aggregate invariant does not hold."""


class DiceRollError(RpgBotError):
    """Raised when dice rolling operations fail."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class ConfigurationError(RpgBotError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    "RpgBotError",
    # Validation
    "ValidationError",
    "AttributeBudgetError",
    "InvalidChoiceError",
    "InventoryError",
    "EquipFailure",
    "EquipmentError",
    "InsufficientGoldError",
    "InvalidAmountError",
    # Protocol
    "ProtocolError",
    "InvalidTransitionError",
    "NoActiveSessionError",
    "SessionAlreadyActiveError",
    "CharacterAlreadyExistsError",
    "CharacterNotFoundError",
    # Collaborator / programmer
    "PersistenceError",
    "MalformedEventError",
    "InvariantViolationError",
    "DiceRollError",
    "ConfigurationError",
]
