"""
Slot machine primitives: symbols, reel weights, the reward table, the roller
and bet parsing.

Nothing in here talks to Discord or Redis, the Slots cog and the spin engine
build on top of it.
"""

import enum
import random
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

REEL_COUNT = 3
ROW_COUNT = 3
PAYLINE_ROW = 1

ALL_IN_KEYWORD = "all"
AMOUNT_RE = re.compile(r"^\+?(\d+)")


class Symbol(enum.Enum):
    FILLER_A = "filler1"
    FILLER_B = "filler2"
    FILLER_C = "filler3"
    CHERRY = "cherry"
    BAR = "bar"
    SEVEN = "seven"


class ReelDistribution:
    """Weighted symbol tables, one per reel.

    Reels are weighted separately on purpose: the first reel is more generous
    with the rare symbols than the other two.
    """

    def __init__(self, reels: Sequence[Mapping[Symbol, int]]):
        if len(reels) != REEL_COUNT:
            raise ValueError("Expected {} reels, got {}".format(REEL_COUNT, len(reels)))

        for index, weights in enumerate(reels):
            if not weights:
                raise ValueError("Reel {} has no symbols".format(index))
            for symbol, weight in weights.items():
                if weight < 1:
                    raise ValueError("Reel {} has weight {} for {}".format(index, weight, symbol.name))

        self._reels: Tuple[Dict[Symbol, int], ...] = tuple(dict(weights) for weights in reels)

    def weights_for(self, reel_index: int) -> Mapping[Symbol, int]:
        return self._reels[reel_index]

    def total_weight(self, reel_index: int) -> int:
        return sum(self._reels[reel_index].values())


DISTRIBUTION = ReelDistribution([
    {
        Symbol.FILLER_A: 5,
        Symbol.FILLER_B: 5,
        Symbol.FILLER_C: 5,
        Symbol.CHERRY: 4,
        Symbol.BAR: 3,
        Symbol.SEVEN: 1,
    },
    {
        Symbol.FILLER_A: 6,
        Symbol.FILLER_B: 6,
        Symbol.FILLER_C: 6,
        Symbol.CHERRY: 3,
        Symbol.BAR: 1,
        Symbol.SEVEN: 1,
    },
    {
        Symbol.FILLER_A: 6,
        Symbol.FILLER_B: 6,
        Symbol.FILLER_C: 6,
        Symbol.CHERRY: 3,
        Symbol.BAR: 1,
        Symbol.SEVEN: 1,
    },
])


@dataclass(frozen=True)
class RewardRule:
    symbol: Symbol
    count: int
    multiplier: int
    label: str


# Sorted once by descending count so three cherries are matched before two.
# sorted() is stable, equal counts keep the order they are declared in.
REWARDS: Tuple[RewardRule, ...] = tuple(sorted([
    RewardRule(Symbol.SEVEN, 3, 80, "80x"),
    RewardRule(Symbol.BAR, 3, 40, "40x"),
    RewardRule(Symbol.CHERRY, 3, 20, "20x"),
    RewardRule(Symbol.CHERRY, 2, 5, "5x"),
    RewardRule(Symbol.CHERRY, 1, 2, "2x"),
], key=lambda rule: rule.count, reverse=True))


def rewards_descending() -> Tuple[RewardRule, ...]:
    return REWARDS


@dataclass(frozen=True)
class Grid:
    """A rolled 3x3 board. Rows are paylines, columns are reels."""

    rows: Tuple[Tuple[Symbol, ...], ...]

    @property
    def payline(self) -> Tuple[Symbol, ...]:
        return self.rows[PAYLINE_ROW]


class Roller:
    def __init__(self, distribution: ReelDistribution = DISTRIBUTION, rng: Optional[random.Random] = None):
        self.distribution = distribution
        self.rng = rng or random.Random()

    def draw(self, reel_index: int) -> Symbol:
        """Draws a single symbol from the given reel, P(s) = weight(s) / total weight."""
        weights = self.distribution.weights_for(reel_index)
        return self.rng.choices(list(weights), weights=list(weights.values()), k=1)[0]

    def spin(self) -> Grid:
        columns: List[List[Symbol]] = [
            [self.draw(reel) for _ in range(ROW_COUNT)] for reel in range(REEL_COUNT)
        ]
        rows = tuple(tuple(column[row] for column in columns) for row in range(ROW_COUNT))
        return Grid(rows)


def resolve_reward(row: Sequence[Symbol]) -> Optional[RewardRule]:
    """Returns the first rule of the reward table that the row satisfies, or None."""
    for rule in REWARDS:
        if list(row).count(rule.symbol) >= rule.count:
            return rule
    return None


@dataclass(frozen=True)
class Bet:
    amount: int
    is_info_request: bool


INFO_REQUEST = Bet(amount=0, is_info_request=True)


def wager_token(args: Sequence[str]) -> Optional[str]:
    """Finds the first argument that names a wager.

    Returns the ``all`` keyword or the leading positive integer as a string,
    or None when no argument looks like a bet.
    """
    for arg in args:
        token = arg.strip().lower()
        if token == ALL_IN_KEYWORD:
            return ALL_IN_KEYWORD
        match = AMOUNT_RE.match(token)
        if match and int(match.group(1)) > 0:
            return match.group(1)
    return None


def parse_bet(args: Sequence[str], balance: int) -> Bet:
    token = wager_token(args)
    if token is None:
        return INFO_REQUEST
    if token == ALL_IN_KEYWORD:
        return Bet(amount=balance, is_info_request=False)
    return Bet(amount=int(token), is_info_request=False)
