"""Test builders shared by unit tests: identities, a manual clock, protocol config."""

from datetime import UTC, datetime, timedelta

from src.ql_common.fixed_point import to_fixed
from src.ql_market.domain.models import CurveParams, ProtocolConfig

OWNER = "owner"
GOVERNANCE = "governance"
TREASURY = "treasury"
ALICE, BOB, CAROL, DAVE = "alice", "bob", "carol", "dave"
MEMBERS = [ALICE, BOB, CAROL]
WEIGHTS = [40, 35, 25]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_config(**overrides: object) -> ProtocolConfig:
    config = ProtocolConfig(
        owner=OWNER,
        governance=GOVERNANCE,
        treasury=TREASURY,
        protocol_fee_bps=50,
        defaults=CurveParams(
            base_price=to_fixed("0.0001"),
            slope=to_fixed("0.00000001"),
            target_raise=to_fixed("10"),
        ),
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config
