"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth / roles
  3xxx: Market lifecycle
  4xxx: Betting
  5xxx: Position / claims
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


# --- 1xxx: Auth / roles ---

class UnauthorizedError(AppError):
    def __init__(self, action: str) -> None:
        super().__init__(1001, f"Caller is not authorized to {action}", 403)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketClosedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3002, f"Market is closed for betting: {market_id}", 422)


class InvalidInputError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid input: {detail}", 422)


class AlreadyFinalizedError(AppError):
    def __init__(self, market_id: int, state: str) -> None:
        super().__init__(3004, f"Market {market_id} is already finalized (state={state})", 409)


class NotYetClosedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3005, f"Market {market_id} is still open for betting", 422)


class ResolutionExpiredError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3006, f"Resolution window has expired for market {market_id}", 422)


# --- 4xxx: Betting ---

class StakeOutOfBoundsError(AppError):
    def __init__(self, amount: int, min_bet: int, max_bet: int) -> None:
        super().__init__(
            4001,
            f"Stake {amount} must be in [{min_bet}, {max_bet}]",
            422,
        )


class InvalidStakeError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(4002, f"Stake {amount} would mint zero shares", 422)


# --- 5xxx: Position / claims ---

class NothingToClaimError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Nothing to claim: {detail}", 422)


class AlreadyClaimedError(AppError):
    def __init__(self, market_id: int, participant_id: str) -> None:
        super().__init__(
            5002, f"Position already claimed: market={market_id} participant={participant_id}", 409
        )


class TransferFailedError(AppError):
    def __init__(self, participant_id: str, amount: int) -> None:
        super().__init__(5003, f"Transfer of {amount} to {participant_id} failed", 502)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class PausedError(AppError):
    def __init__(self) -> None:
        super().__init__(9003, "Trading is paused", 503)
