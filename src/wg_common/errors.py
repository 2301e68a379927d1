"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account / ledger
  3xxx: Race
  4xxx: Wager
  5xxx: Settlement
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Administrator access required", 403)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} tokens, available {available} tokens",
            422,
        )


# --- 3xxx: Race ---

class RaceNotFoundError(AppError):
    def __init__(self, race_id: str) -> None:
        super().__init__(3001, f"Race not found: {race_id}", 404)


class BettingClosedError(AppError):
    def __init__(self, race_id: str) -> None:
        super().__init__(3002, f"Betting is closed for race {race_id}", 422)


# --- 4xxx: Wager ---

class WagerValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid wager: {detail}", 422)


class DuplicateWagerError(AppError):
    def __init__(self, race_id: str) -> None:
        super().__init__(4002, f"A parlay wager already exists for race {race_id}", 409)


class WagerNotFoundError(AppError):
    def __init__(self, wager_id: str) -> None:
        super().__init__(4003, f"Wager not found: {wager_id}", 404)


class NotWagerOwnerError(AppError):
    def __init__(self, wager_id: str) -> None:
        super().__init__(4004, f"Wager {wager_id} belongs to another user", 403)


class AlreadySettledError(AppError):
    def __init__(self, wager_id: str, status: str) -> None:
        super().__init__(4005, f"Wager {wager_id} is already {status}", 409)


class CancelWindowExpiredError(AppError):
    def __init__(self, wager_id: str, window_minutes: int) -> None:
        super().__init__(
            4006,
            f"Wager {wager_id} can only be cancelled within {window_minutes} minutes of placing it",
            422,
        )


class StakeLimitExceededError(AppError):
    def __init__(self, odds_display: str, max_stake: int) -> None:
        super().__init__(
            4007,
            f"Stakes on heavily favored picks ({odds_display}) are limited to {max_stake} tokens",
            422,
        )


# --- 5xxx: Settlement ---

class DataIntegrityFallback(AppError):
    """Result data cannot resolve a wager safely. Settlement voids the wager."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(5001, f"Data integrity fallback: {reason}", 500)


class SettlementStateUnavailableError(AppError):
    def __init__(self, detail: str = "completed settlements not loaded") -> None:
        super().__init__(5002, f"Settlement state unavailable: {detail}", 503)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class UpstreamUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Result feed unavailable: {detail}", 503)
