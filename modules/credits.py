import enum
import logging
import os
import random
import re
from typing import List, Optional

import discord
import pendulum
import redis.asyncio as redis
from discord.ext import commands
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

CREDITS_PER_POST = int(os.getenv("CREDITS_PER_POST", "1"))
CREDITS_PER_MINUTE = int(os.getenv("CREDITS_PER_MINUTE", "0"))
CREDITS_DOUBLE_CHANNEL_ID = int(os.getenv("CREDITS_DOUBLE_CHANNEL_ID", "0"))

K_BALANCE = "credits:{guild_id}:{user_id}"        # int total
K_BY_TYPE = "credits:types:{guild_id}:{user_id}"  # hash credit type -> sum
K_LAST = "credits:last:{guild_id}:{user_id}"      # epoch seconds of the last adjustment

COMMAND_RE = re.compile(r"^[.|!?=,#~]{1,2}[a-zA-Z]+")

# Refuses any change that would leave the balance negative, otherwise applies it
# and returns {applied, balance}.
ADJUST_SCRIPT = """
local balance = tonumber(redis.call('GET', KEYS[1]) or '0')
local delta = tonumber(ARGV[1])
if balance + delta < 0 then
    return {0, balance}
end
balance = redis.call('INCRBY', KEYS[1], delta)
redis.call('HINCRBY', KEYS[2], ARGV[2], delta)
redis.call('SET', KEYS[3], ARGV[3])
return {1, balance}
"""

# Pays whole minutes since the last adjustment at ARGV[2] credits per minute and
# moves the last adjustment to now, so the same minutes can't be paid twice.
TIME_SCRIPT = """
local last = tonumber(redis.call('GET', KEYS[3]) or '')
if not last then
    return 0
end
local credits = math.floor((tonumber(ARGV[1]) - last) / 60) * tonumber(ARGV[2])
if credits <= 0 then
    return 0
end
redis.call('INCRBY', KEYS[1], credits)
redis.call('HINCRBY', KEYS[2], ARGV[3], credits)
redis.call('SET', KEYS[3], ARGV[1])
return credits
"""


class CreditType(enum.Enum):
    SLOTS = "slots"
    MESSAGE = "message"
    TIME = "time"


class LedgerError(Exception):
    pass


class LedgerUnavailable(LedgerError):
    """The backing store could not be reached."""


class LedgerRejected(LedgerError):
    """The store refused the adjustment, e.g. the balance would go negative."""

    def __init__(self, guild_id: int, user_id: int, delta: int, balance: int):
        super().__init__("Adjustment of {} rejected for {}/{} with balance {}".format(delta, guild_id, user_id, balance))
        self.delta = delta
        self.balance = balance


class CreditLedger:
    """Credit balances per (guild, user), kept in Redis.

    Every adjustment runs as a single Lua script so concurrent changes to the
    same balance can't interleave.
    """

    def __init__(self, r: redis.Redis):
        self.r = r
        self._adjust = r.register_script(ADJUST_SCRIPT)
        self._accrue_time = r.register_script(TIME_SCRIPT)

    async def get_balance(self, guild_id: int, user_id: int) -> int:
        try:
            value = await self.r.get(K_BALANCE.format(guild_id=guild_id, user_id=user_id))
        except RedisError as error:
            raise LedgerUnavailable("Could not read the balance of {}/{}".format(guild_id, user_id)) from error
        return int(value or 0)

    async def adjust_balance(self, guild_id: int, user_id: int, delta: int, reason: CreditType) -> int:
        """Applies delta to the balance and returns the new balance."""
        try:
            applied, balance = await self._adjust(keys=self._keys(guild_id, user_id),
                                                  args=[delta, reason.value, pendulum.now().int_timestamp])
        except RedisError as error:
            raise LedgerUnavailable("Could not adjust the balance of {}/{}".format(guild_id, user_id)) from error

        if not int(applied):
            raise LedgerRejected(guild_id, user_id, delta, int(balance))

        logger.debug("Credits %+d (%s) for %s/%s, balance %s", delta, reason.value, guild_id, user_id, balance)
        return int(balance)

    async def accrue_time_credits(self, guild_id: int, user_id: int, rate: int) -> int:
        """Pays ``rate`` credits per whole minute since the member's last adjustment.

        Members without any previous adjustment get nothing. Returns the
        credits added.
        """
        try:
            credits = await self._accrue_time(keys=self._keys(guild_id, user_id),
                                              args=[pendulum.now().int_timestamp, rate, CreditType.TIME.value])
        except RedisError as error:
            raise LedgerUnavailable("Could not add time credits for {}/{}".format(guild_id, user_id)) from error

        if credits:
            logger.debug("Credits %+d (time) for %s/%s", int(credits), guild_id, user_id)
        return int(credits)

    @staticmethod
    def _keys(guild_id: int, user_id: int) -> List[str]:
        return [
            K_BALANCE.format(guild_id=guild_id, user_id=user_id),
            K_BY_TYPE.format(guild_id=guild_id, user_id=user_id),
            K_LAST.format(guild_id=guild_id, user_id=user_id),
        ]


def is_weekend(now: Optional[pendulum.DateTime] = None) -> bool:
    now = now or pendulum.now()
    return now.day_of_week in (pendulum.SATURDAY, pendulum.SUNDAY)


def time_rate(weekend: bool = False) -> int:
    """Passive credits per minute since the member's last credited activity."""
    return CREDITS_PER_MINUTE * 2 if weekend else CREDITS_PER_MINUTE


def activity_credits(content: str, *, rng: random.Random, weekend: bool = False, double_rate: bool = False) -> int:
    """Credits for posting a message.

    Commands only count one time in five and one-word messages one time in
    three.
    """
    if COMMAND_RE.match(content.strip()) and rng.randint(1, 5) != 1:
        return 0

    if len(content.split()) <= 1 and rng.randint(1, 3) != 1:
        return 0

    credits = CREDITS_PER_POST
    if double_rate:
        credits *= 2
    if weekend:
        credits *= 2
    return credits


class Credits(commands.Cog, name="Credits"):
    """Credit balances and passive credits for chatting"""

    def __init__(self, bot: commands.Bot, ledger: Optional[CreditLedger] = None, rng: Optional[random.Random] = None):
        self.bot = bot
        self.ledger = ledger or CreditLedger(bot.redis)
        self.rng = rng or random.Random()

    @commands.command()
    @commands.guild_only()
    async def credits(self, ctx: commands.Context, member: discord.Member = None):
        """Shows how many credits you (or the mentioned member) have"""
        member = member or ctx.author
        try:
            balance = await self.ledger.get_balance(ctx.guild.id, member.id)
        except LedgerError:
            logger.exception("Could not read credits for %s", member.id)
            return await ctx.send("Credits are temporarily unavailable.")

        embed: discord.Embed = discord.Embed(title="{}'s credits".format(member.display_name))
        embed.add_field(name="Balance", value=format_credits(balance), inline=False)
        return await ctx.send(embed=embed)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Hands out credits for chatting"""
        author = message.author

        if author.bot or message.guild is None or message.type == discord.MessageType.new_member:
            return

        guild_id, user_id = message.guild.id, author.id
        weekend = is_weekend()

        try:
            rate = time_rate(weekend)
            if rate:
                await self.ledger.accrue_time_credits(guild_id, user_id, rate)

            credits = activity_credits(message.content, rng=self.rng, weekend=weekend,
                                       double_rate=message.channel.id == CREDITS_DOUBLE_CHANNEL_ID)
            if credits:
                await self.ledger.adjust_balance(guild_id, user_id, credits, CreditType.MESSAGE)
        except LedgerError:
            logger.error("Could not add message credits for %s/%s", guild_id, user_id, exc_info=True)


def format_credits(amount: int) -> str:
    """Formats with ' as the thousands separator, e.g. 1'234'567."""
    return "{:,}".format(amount).replace(",", "'")


async def setup(bot: commands.Bot):
    await bot.add_cog(Credits(bot))
