"""
STATISTICAL_EDGE.PY - Situational, matchup, weather and injury modeling
=======================================================================

Schedule and matchup context is not part of the input records, so it is
drawn from a generator seeded by the match id. Every value is drawn in a
fixed order whether or not it ends up mattering, so the same match always
gets the same story.

Combination (home-oriented, then resolved to a pick):

    home_value = base + situational * 0.18 + matchup * 0.12
    confidence = pick value
               + ((weather - 50) / 50 * 15) * 0.15
               + ((injuries - 50) / 50 * 20) * 0.20
    clamp [35, 90]

Besides the confidence, the prediction carries analysis_factors,
key_factors (top 5 by |impact|), markdown detailed_reasoning, risk_level
and warning_flags.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging
import re

from core.algorithm_ids import AlgorithmId
from core.invariants import STATISTICAL_EDGE_BOUNDS, clamp, clamp_to
from core.seeded_random import SeededRandom
from core.sports import League, get_league_profile, is_soccer_league
from engine.algorithms.base import AlgorithmVariant, VariantDraft, home_oriented, resolve_side
from match_schema import AnalysisFactor, Match, Prediction, RiskLevel, Side
from signals.factor import NEGATIVE
from signals.injuries import calculate_injury_score, score_match_injuries
from signals.weather import calculate_weather_score

logger = logging.getLogger(__name__)

SEED_SALT = "statistical-edge"

SITUATIONAL_WEIGHT = 0.18
MATCHUP_WEIGHT = 0.12
WEATHER_WEIGHT = 0.15
INJURY_WEIGHT = 0.20
WEATHER_SCALE = 15.0
INJURY_SCALE = 20.0

TRAVEL_OPTIONS = ("short", "medium", "long", "cross-country")
SCHEDULE_OPTIONS = ("trap", "lookahead", "letdown", "revenge", "neutral")

KEY_FACTOR_COUNT = 5

_IMPACT_PATTERN = re.compile(r"\(([+-]?\d+(?:\.\d+)?)\)")

# First matching keyword group names the factor
_CATEGORIES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("rest",), "Rest Advantage"),
    (("back-to-back", "b2b"), "Schedule Fatigue"),
    (("travel",), "Travel Factor"),
    (("trap", "lookahead", "looking ahead", "letdown"), "Schedule Spot"),
    (("revenge",), "Revenge Game"),
    (("time zone",), "Time Zone"),
    (("road warrior", "elite road"), "Road Performance"),
    (("struggle",), "Home Struggles"),
    (("road favorite",), "Road Favorite"),
    (("pace",), "Pace Matchup"),
    (("style",), "Style Clash"),
    (("h2h", "series"), "Head-to-Head"),
    (("schedule", "sos"), "Strength of Schedule"),
    (("venue", "atmosphere"), "Venue Factor"),
)


# =============================================================================
# SITUATIONAL / MATCHUP DRAWS
# =============================================================================


@dataclass
class SituationalSpots:
    rest_days_home: int
    rest_days_away: int
    back_to_back_home: bool
    back_to_back_away: bool
    travel: str
    schedule_spot: str
    home_revenge: bool
    time_zones: int
    road_warrior: bool
    home_struggles: bool
    adjustment: float = 0.0
    reasons: List[str] = field(default_factory=list)

    def apply(self, delta: float, reason: str) -> None:
        self.adjustment += delta
        self.reasons.append(reason)


@dataclass
class MatchupEdges:
    pace: int
    style_clash: bool
    head_to_head: int
    home_sos: int
    away_sos: int
    elite_road_team: bool
    weak_home_venue: bool
    adjustment: float = 0.0
    reasons: List[str] = field(default_factory=list)

    def apply(self, delta: float, reason: str) -> None:
        self.adjustment += delta
        self.reasons.append(reason)


def analyze_situational_spots(match: Match, rng: SeededRandom) -> SituationalSpots:
    spots = SituationalSpots(
        rest_days_home=rng.randint(1, 4),
        rest_days_away=rng.randint(1, 4),
        back_to_back_home=rng.chance(0.15),
        back_to_back_away=rng.chance(0.15),
        travel=rng.choice(TRAVEL_OPTIONS),
        schedule_spot=rng.choice(SCHEDULE_OPTIONS),
        home_revenge=rng.chance(0.5),
        time_zones=rng.randint(0, 3),
        road_warrior=rng.chance(0.25),
        home_struggles=rng.chance(0.20),
    )

    rest_diff = spots.rest_days_home - spots.rest_days_away
    if rest_diff > 0:
        spots.apply(rest_diff, f"Home has {rest_diff} more rest days (+{rest_diff})")
    elif rest_diff < 0:
        spots.apply(rest_diff, f"Away has {-rest_diff} more rest days ({rest_diff})")

    if spots.back_to_back_home and spots.back_to_back_away:
        spots.reasons.append("Both teams on back-to-back (neutral)")
    elif spots.back_to_back_home:
        spots.apply(-4, "Home on back-to-back (-4)")
    elif spots.back_to_back_away:
        spots.apply(4, "Away on back-to-back (+4)")

    if spots.travel == "cross-country":
        spots.apply(2, "Away cross-country travel (+2)")
    elif spots.travel == "long":
        spots.apply(1, "Away long travel (+1)")
    elif spots.travel == "short":
        spots.apply(-1, "Away short travel, road-ready (-1)")

    if spots.schedule_spot == "trap":
        spots.apply(-4, "Trap game for home team (-4)")
    elif spots.schedule_spot == "lookahead":
        spots.apply(-5, "Home looking ahead to bigger game (-5)")
    elif spots.schedule_spot == "letdown":
        spots.apply(-6, "Letdown spot for home after big win (-6)")
    elif spots.schedule_spot == "revenge":
        if spots.home_revenge:
            spots.apply(3, "Home revenge game (+3)")
        else:
            spots.apply(-3, "Away revenge game (-3)")

    if spots.time_zones >= 2:
        spots.apply(1, f"Away crossing {spots.time_zones} time zones (+1)")
    if spots.road_warrior:
        spots.apply(-4, "Away team is a road warrior (-4)")
    if spots.home_struggles:
        spots.apply(-3, "Home team struggles at home (-3)")

    odds = match.odds
    if odds.has_prices and odds.away_win < odds.home_win:
        spots.apply(-3, "Road favorite tends to perform (-3)")
    return spots


def analyze_matchup(match: Match, rng: SeededRandom) -> MatchupEdges:
    edges = MatchupEdges(
        pace=rng.randint(-10, 10),
        style_clash=rng.chance(0.3),
        head_to_head=rng.randint(-10, 10),
        home_sos=rng.randint(0, 99),
        away_sos=rng.randint(0, 99),
        elite_road_team=rng.chance(0.15),
        weak_home_venue=rng.chance(0.12),
    )

    if get_league_profile(match.league).pace_sensitive and abs(edges.pace) > 3:
        pace = edges.pace * 0.4
        if pace > 0:
            edges.apply(pace, f"Home pace advantage (+{pace:.1f})")
        else:
            edges.apply(pace, f"Away pace advantage ({pace:.1f})")

    if edges.style_clash:
        edges.apply(-2, "Style clash reduces predictability (-2)")

    if abs(edges.head_to_head) > 2:
        h2h = edges.head_to_head * 0.25
        if h2h > 0:
            edges.apply(h2h, f"Home owns H2H series (+{h2h:.1f})")
        else:
            edges.apply(h2h, f"Away owns H2H series ({h2h:.1f})")

    sos_diff = edges.home_sos - edges.away_sos
    if sos_diff > 20:
        edges.apply(2, "Home has tougher schedule, battle-tested (+2)")
    elif sos_diff < -20:
        edges.apply(-2, "Away has tougher schedule, battle-tested (-2)")

    if edges.elite_road_team:
        edges.apply(-5, "Away is elite road team (-5)")
    if edges.weak_home_venue:
        edges.apply(-3, "Home venue lacks atmosphere (-3)")
    return edges


# =============================================================================
# WEATHER / INJURY ANALYSIS
# =============================================================================


def analyze_weather(match: Match) -> Tuple[float, List[str]]:
    """(score, notes) on top of the smart-score weather factor."""
    weather = calculate_weather_score(match)
    score = weather.score
    notes: List[str] = []

    if match.league is League.NFL:
        if weather.score < 60:
            score -= 10
            notes.append("Severe weather favors under and rushing attacks")
    elif match.league is League.MLB:
        if any("wind" in f.key for f in weather.factors):
            score -= 5
            notes.append("Wind affecting ball flight - adjust totals")
    elif is_soccer_league(match.league):
        if weather.score < 70:
            score -= 5
            notes.append("Field conditions may reduce scoring")

    notes.extend(f.description for f in weather.factors if f.impact == NEGATIVE)
    return score, notes


def analyze_injuries(match: Match) -> Tuple[float, List[str]]:
    """(score, key players) on top of the smart-score injury factor."""
    if match.injuries:
        injuries = score_match_injuries(match, match.injuries)
    else:
        injuries = calculate_injury_score(match)
    descriptors = injuries.descriptions()
    score = injuries.score
    key_players: List[str] = []

    for descriptor in descriptors:
        text = descriptor.lower()
        if "out" in text or "doubtful" in text or "losing streak" in text:
            key_players.append(descriptor)
            score -= 5

    lowered = [d.lower() for d in descriptors]
    if match.league is League.NFL:
        if any("qb" in d or "quarterback" in d for d in lowered):
            score -= 20
            key_players.append("QB injury creates significant uncertainty")
    elif match.league is League.NBA:
        if any("star" in d for d in lowered):
            score -= 15

    return clamp(score, 0, 100), key_players


# =============================================================================
# PRESENTATION
# =============================================================================


def parse_impact(reason: str) -> float:
    found = _IMPACT_PATTERN.search(reason)
    return float(found.group(1)) if found else 0.0


def categorize_reason(reason: str) -> str:
    text = reason.lower()
    for keywords, name in _CATEGORIES:
        if any(word in text for word in keywords):
            return name
    return "Statistical Factor"


def _favored(impact: float) -> Optional[str]:
    if impact > 0:
        return Side.HOME.value
    if impact < 0:
        return Side.AWAY.value
    return None


def build_analysis_factors(
    spots: SituationalSpots,
    edges: MatchupEdges,
    weather_score: float,
    weather_notes: List[str],
    key_players: List[str],
) -> List[AnalysisFactor]:
    factors = []
    for reason in spots.reasons + edges.reasons:
        impact = parse_impact(reason)
        factors.append(AnalysisFactor(
            name=categorize_reason(reason),
            impact=impact,
            description=reason,
            favored_team=_favored(impact),
        ))

    weather_impact = 2.0 if weather_score > 70 else -3.0 if weather_score < 50 else 0.0
    for note in weather_notes:
        factors.append(AnalysisFactor(name="Weather Impact", impact=weather_impact, description=note))
    for player in key_players:
        factors.append(AnalysisFactor(name="Injury Impact", impact=-3.0, description=player))
    return factors


def build_detailed_reasoning(
    match: Match,
    pick: Side,
    spots: SituationalSpots,
    edges: MatchupEdges,
    weather_notes: List[str],
    key_players: List[str],
) -> str:
    home, away = match.home_team.name, match.away_team.name
    lines = [f"**Pick: {home if pick == Side.HOME else away}**", ""]

    for title, entries in (
        ("Situational Factors", spots.reasons),
        ("Matchup Analysis", edges.reasons),
        ("Weather Conditions", weather_notes),
        ("Injury Report", key_players),
    ):
        if entries:
            lines.append(f"**{title}:**")
            lines.extend(f"- {entry}" for entry in entries)
            lines.append("")

    net = spots.adjustment + edges.adjustment
    if net > 0:
        lines.append(f"**Net Edge:** +{net:.1f} points favoring {home}")
    elif net < 0:
        lines.append(f"**Net Edge:** {net:.1f} points favoring {away}")
    return "\n".join(lines).strip()


def build_warning_flags(spots: SituationalSpots, edges: MatchupEdges, key_players: List[str]) -> List[str]:
    warnings = []
    if spots.schedule_spot == "trap":
        warnings.append("Trap game - home team may be unfocused")
    elif spots.schedule_spot == "lookahead":
        warnings.append("Lookahead spot - potential distraction")
    elif spots.schedule_spot == "letdown":
        warnings.append("Letdown game after big win")
    if spots.back_to_back_home:
        warnings.append("Home team on back-to-back")
    if spots.back_to_back_away:
        warnings.append("Away team on back-to-back")
    if spots.travel == "cross-country":
        warnings.append("Cross-country travel for away team")
    if len(key_players) >= 2:
        warnings.append("Multiple key injuries affecting prediction")
    if edges.style_clash:
        warnings.append("Style clash - increased variance expected")
    return warnings


def risk_level(confidence: float) -> RiskLevel:
    if confidence >= 70:
        return RiskLevel.LOW
    if confidence >= 55:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


# =============================================================================
# VARIANT
# =============================================================================


class StatisticalEdge(AlgorithmVariant):
    algorithm_id = AlgorithmId.STATISTICAL_EDGE
    bounds = STATISTICAL_EDGE_BOUNDS

    def adjust(self, match: Match, base: Prediction) -> VariantDraft:
        rng = SeededRandom.for_match(match.id, salt=SEED_SALT)
        spots = analyze_situational_spots(match, rng)
        edges = analyze_matchup(match, rng)
        weather_score, weather_notes = analyze_weather(match)
        injury_score, key_players = analyze_injuries(match)

        home_value = (
            home_oriented(base)
            + spots.adjustment * SITUATIONAL_WEIGHT
            + edges.adjustment * MATCHUP_WEIGHT
        )
        side, confidence = resolve_side(home_value, (0.0, 100.0))
        confidence += ((weather_score - 50) / 50 * WEATHER_SCALE) * WEATHER_WEIGHT
        confidence += ((injury_score - 50) / 50 * INJURY_SCALE) * INJURY_WEIGHT

        factors = build_analysis_factors(spots, edges, weather_score, weather_notes, key_players)
        key_factors = sorted(factors, key=lambda f: abs(f.impact), reverse=True)[:KEY_FACTOR_COUNT]
        logger.debug(
            "Statistical edge for %s: situational=%.1f matchup=%.1f weather=%.0f injuries=%.0f",
            match.id, spots.adjustment, edges.adjustment, weather_score, injury_score,
        )

        return VariantDraft(
            recommended=side,
            raw_confidence=clamp_to(confidence, STATISTICAL_EDGE_BOUNDS),
            reasoning=[f.description for f in key_factors],
            extras={
                "analysis_factors": tuple(factors),
                "key_factors": tuple(key_factors),
                "detailed_reasoning": build_detailed_reasoning(match, side, spots, edges, weather_notes, key_players),
                "warning_flags": tuple(build_warning_flags(spots, edges, key_players)),
            },
        )

    def finalize(self, draft: VariantDraft, confidence: float) -> Dict[str, Any]:
        fields = dict(draft.extras)
        fields["risk_level"] = risk_level(confidence)
        return fields
