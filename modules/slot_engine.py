"""
Runs a single slots play from the raw command arguments to a settled outcome.

    gate -> validate bet -> roll -> resolve the payline -> settle -> arm cooldown

Blocked, info and invalid plays never touch the balance or the cooldown.
Ledger failures propagate to the caller, in which case nothing is announced
and no cooldown is armed.
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

from modules.cooldown import CooldownGate
from modules.credits import CreditLedger, CreditType
from modules.slot_machine import Grid, RewardRule, Roller, parse_bet, resolve_reward, rewards_descending, \
    wager_token

logger = logging.getLogger(__name__)

COOLDOWN_SECONDS = 3


def cooldown_key(guild_id: int, user_id: int) -> str:
    return "slots-delay-{}-{}".format(guild_id, user_id)


class InvalidBetReason(enum.Enum):
    NO_CREDITS = "no_credits"
    INSUFFICIENT_CREDITS = "insufficient_credits"


@dataclass(frozen=True)
class Blocked:
    pass


@dataclass(frozen=True)
class Info:
    rewards: Tuple[RewardRule, ...]


@dataclass(frozen=True)
class Invalid:
    reason: InvalidBetReason
    wager: int
    balance: int


@dataclass(frozen=True)
class Settled:
    grid: Grid
    reward: Optional[RewardRule]
    wager: int
    payout: int
    delta: int
    balance: int

    @property
    def won(self) -> bool:
        return self.payout > 0


SpinOutcome = Union[Blocked, Info, Invalid, Settled]


class SpinEngine:
    def __init__(self, ledger: CreditLedger, gate: CooldownGate, roller: Optional[Roller] = None,
                 clock: Callable[[], float] = time.time):
        self.ledger = ledger
        self.gate = gate
        self.roller = roller or Roller()
        self.clock = clock

    async def play(self, guild_id: int, user_id: int, args: Sequence[str]) -> SpinOutcome:
        key = cooldown_key(guild_id, user_id)

        if not self.gate.try_enter(key, self.clock()):
            return Blocked()

        settled = False
        try:
            outcome = await self._play(guild_id, user_id, args)
            settled = isinstance(outcome, Settled)
            return outcome
        finally:
            if settled:
                self.gate.arm(key, self.clock())
            else:
                self.gate.release(key)

    async def _play(self, guild_id: int, user_id: int, args: Sequence[str]) -> SpinOutcome:
        if wager_token(args) is None:
            return Info(rewards_descending())

        balance = await self.ledger.get_balance(guild_id, user_id)
        bet = parse_bet(args, balance)

        # Amount tokens are always positive, only "all" on an empty balance gets here
        if bet.amount <= 0:
            return Invalid(InvalidBetReason.NO_CREDITS, bet.amount, balance)
        if bet.amount > balance:
            return Invalid(InvalidBetReason.INSUFFICIENT_CREDITS, bet.amount, balance)

        grid = self.roller.spin()
        reward = resolve_reward(grid.payline)
        payout = bet.amount * reward.multiplier if reward else 0
        delta = payout - bet.amount

        new_balance = await self.ledger.adjust_balance(guild_id, user_id, delta, CreditType.SLOTS)
        logger.info("Slots %s/%s bet %s, %s, balance %s -> %s", guild_id, user_id, bet.amount,
                    reward.label if reward else "no win", balance, new_balance)

        return Settled(grid, reward, bet.amount, payout, delta, new_balance)
