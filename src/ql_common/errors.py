"""Unified error codes and custom exceptions.

Every rejected operation aborts with one of these; the message is the stable,
human-readable reason returned to the caller.

Error code ranges:
  1xxx: Validation (malformed input)
  2xxx: Economic (slippage, liquidity, dust floor, withdrawal bounds)
  3xxx: Authorization (owner / governance / quorum membership)
  4xxx: Temporal (deadlines, execution window, timelock)
  5xxx: State conflict (graduated, inactive, already done)
  6xxx: Not found
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


# --- 1xxx: Validation ---

class QuorumSizeError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Quorum size 3-10", 422)


class WeightsMismatchError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Weights mismatch", 422)


class WeightsSumError(AppError):
    def __init__(self, total: int) -> None:
        super().__init__(1003, f"Weights must sum to 100 (got {total})", 422)


class DuplicateMembersError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Duplicate agents", 422)


class ProposerNotInQuorumError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Proposer must be in quorum", 422)


class ZeroAddressError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Zero address", 422)


class FeeTooHighError(AppError):
    def __init__(self, fee_bps: int) -> None:
        super().__init__(1007, f"Fee too high: {fee_bps} bps", 422)


class InvalidAssetError(AppError):
    def __init__(self) -> None:
        super().__init__(1008, "Invalid token", 422)


class InvalidParameterError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1009, f"Invalid parameter: {detail}", 422)


# --- 2xxx: Economic ---

class BelowMinimumPurchaseError(AppError):
    def __init__(self) -> None:
        super().__init__(2001, "Below minimum purchase", 422)


class SlippageExceededError(AppError):
    def __init__(self) -> None:
        super().__init__(2002, "Slippage exceeded", 422)


class ZeroUnitsError(AppError):
    def __init__(self) -> None:
        super().__init__(2003, "Zero tokens", 422)


class NotEnoughUnitsSoldError(AppError):
    def __init__(self) -> None:
        super().__init__(2004, "Not enough tokens sold", 422)


class InsufficientCurveLiquidityError(AppError):
    def __init__(self) -> None:
        super().__init__(2005, "Insufficient curve liquidity", 422)


class ExceedsCurveSupplyError(AppError):
    def __init__(self) -> None:
        super().__init__(2006, "Exceeds curve supply", 422)


class ExceedsWithdrawableError(AppError):
    def __init__(self) -> None:
        super().__init__(2007, "Amount exceeds withdrawable", 422)


class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2008,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class InsufficientAllowanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2009,
            f"Insufficient allowance: required {required}, available {available}",
            422,
        )


# --- 3xxx: Authorization ---

class NotOwnerError(AppError):
    def __init__(self) -> None:
        super().__init__(3001, "Caller is not the owner", 403)


class NotGovernanceError(AppError):
    def __init__(self) -> None:
        super().__init__(3002, "Only governance", 403)


class NotQuorumMemberError(AppError):
    def __init__(self) -> None:
        super().__init__(3003, "Not quorum member", 403)


class NotInProposedQuorumError(AppError):
    def __init__(self) -> None:
        super().__init__(3004, "Not in proposed quorum", 403)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(3005, "Invalid or expired token", 401)


# --- 4xxx: Temporal ---

class VotingEndedError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "Voting ended", 422)


class VotingOngoingError(AppError):
    def __init__(self) -> None:
        super().__init__(4002, "Voting ongoing", 422)


class ExecutionExpiredError(AppError):
    def __init__(self) -> None:
        super().__init__(4003, "Execution expired", 422)


class TimelockNotExpiredError(AppError):
    def __init__(self) -> None:
        super().__init__(4004, "Timelock not expired", 422)


# --- 5xxx: State conflict ---

class MarketGraduatedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5001, f"Market graduated: {market_id}", 409)


class MarketNotActiveError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5002, f"Market not active: {market_id}", 409)


class AlreadyGraduatedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5003, f"Already graduated: {market_id}", 409)


class MarketNotGraduatedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5004, f"Market not graduated: {market_id}", 409)


class AlreadyRescuedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5005, f"Already rescued: {market_id}", 409)


class AlreadyApprovedError(AppError):
    def __init__(self) -> None:
        super().__init__(5006, "Already approved", 409)


class AlreadyExecutedError(AppError):
    def __init__(self) -> None:
        super().__init__(5007, "Already executed", 409)


class AlreadyVotedError(AppError):
    def __init__(self) -> None:
        super().__init__(5008, "Already voted", 409)


class ProposalNotActiveError(AppError):
    def __init__(self, proposal_id: int) -> None:
        super().__init__(5009, f"Proposal not active: {proposal_id}", 409)


class NoPendingPauseError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5010, f"No pending pause: {market_id}", 409)


class ReentrantCallError(AppError):
    def __init__(self) -> None:
        super().__init__(5011, "Reentrant call", 409)


# --- 6xxx: Not found ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(6001, f"Market not found: {market_id}", 404)


class ProposalNotFoundError(AppError):
    def __init__(self, proposal_id: int) -> None:
        super().__init__(6002, f"Proposal not found: {proposal_id}", 404)


class QuorumProposalNotFoundError(AppError):
    def __init__(self, quorum_id: int) -> None:
        super().__init__(6003, f"Quorum proposal not found: {quorum_id}", 404)


class AssetNotFoundError(AppError):
    def __init__(self, asset: str) -> None:
        super().__init__(6004, f"Asset not found: {asset}", 404)


# --- 9xxx: System ---

class ArithmeticOverflowError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9001, f"Arithmetic overflow: {detail}", 500)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
