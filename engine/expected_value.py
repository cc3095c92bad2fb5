"""
EXPECTED_VALUE.PY - EV and simple Kelly sizing for a single pick

    EV = p * (odds - 1) - (1 - p)
    full_kelly = (b * p - q) / b,  b = odds - 1

The full Kelly calculator with caps, growth rate and risk tiers lives in
simulation.kelly.
"""

from dataclasses import dataclass

from match_schema import Odds, Side

DEFAULT_DRAW_ODDS = 3.0


@dataclass(frozen=True)
class ExpectedValue:
    expected_value: float
    ev_percentage: float
    true_probability: float
    decimal_odds: float

    @property
    def is_positive(self) -> bool:
        return self.expected_value > 0

    def to_dict(self):
        return {
            "expected_value": self.expected_value,
            "ev_percentage": self.ev_percentage,
            "true_probability": self.true_probability,
            "decimal_odds": self.decimal_odds,
        }


@dataclass(frozen=True)
class KellyResult:
    full_kelly: float
    kelly_fraction: float
    kelly_stake_units: float


def calculate_expected_value(true_probability: float, decimal_odds: float) -> ExpectedValue:
    """EV per unit staked. Odds at or below 1.0 carry no value."""
    if decimal_odds is None or decimal_odds <= 1:
        return ExpectedValue(0.0, 0.0, true_probability, decimal_odds or 0.0)
    ev = true_probability * (decimal_odds - 1) - (1 - true_probability)
    return ExpectedValue(
        expected_value=round(ev, 4),
        ev_percentage=round(ev * 100, 2),
        true_probability=true_probability,
        decimal_odds=decimal_odds,
    )


def calculate_kelly_criterion(
    true_probability: float,
    decimal_odds: float,
    fraction: float = 0.25,
) -> KellyResult:
    """
    Fractional Kelly. Returns zeros for non-positive edges or degenerate inputs.

    kelly_stake_units expresses the stake on a 100-unit bankroll.
    """
    if true_probability <= 0 or true_probability >= 1 or decimal_odds is None or decimal_odds <= 1:
        return KellyResult(0.0, 0.0, 0.0)
    b = decimal_odds - 1
    q = 1 - true_probability
    full = (b * true_probability - q) / b
    if full <= 0:
        return KellyResult(full, 0.0, 0.0)
    adjusted = full * fraction
    return KellyResult(full, adjusted, round(adjusted * 100, 2))


def odds_for_side(odds: Odds, side: Side) -> float:
    """Decimal price for the recommended side; draws default to 3.0."""
    if side == Side.DRAW:
        return odds.draw or DEFAULT_DRAW_ODDS
    return odds.price_for(side) or 0.0


def pick_expected_value(odds: Odds, side: Side, confidence: float) -> ExpectedValue:
    return calculate_expected_value(confidence / 100, odds_for_side(odds, side))
