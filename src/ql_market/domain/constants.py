"""Protocol constants: supply split, curve defaults, trading floors."""

from datetime import timedelta

from src.ql_common.fixed_point import SCALE

# Account that custodies curve units, raised value and surplus
ENGINE_ACCOUNT = "LAUNCHPAD_ENGINE"
# Base asset handle used when asking the liquidity router for a pool
BASE_ASSET = "NATIVE"

TOTAL_SUPPLY = 1_000_000 * SCALE
QUORUM_ALLOCATION_BPS = 3000
CURVE_ALLOCATION_BPS = 6000
TREASURY_ALLOCATION_BPS = 1000

MIN_QUORUM_SIZE = 3
MAX_QUORUM_SIZE = 10
TOTAL_QUORUM_WEIGHT = 100

MAX_PROTOCOL_FEE_BPS = 500
MIN_PURCHASE = SCALE // 1000  # 0.001

GRADUATION_SLIPPAGE_BPS = 500
GRADUATION_DEADLINE = timedelta(minutes=5)
PAUSE_TIMELOCK = timedelta(hours=24)
