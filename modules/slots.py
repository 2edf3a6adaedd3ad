import logging
import os
from typing import Dict, Sequence

import discord
from discord.ext import commands

from modules.cooldown import CooldownGate
from modules.credits import CreditLedger, LedgerError, format_credits
from modules.slot_engine import COOLDOWN_SECONDS, Blocked, Info, Invalid, InvalidBetReason, Settled, SpinEngine
from modules.slot_machine import Grid, PAYLINE_ROW, RewardRule, Symbol

logger = logging.getLogger(__name__)

GAMBLING_CHANNEL_ID = int(os.getenv("GAMBLING_CHANNEL_ID", "0"))

BAR_EMOJI = os.getenv("SLOTS_BAR_EMOJI", "<:slotsbar:754379562393272512>")
SEVEN_EMOJI = os.getenv("SLOTS_SEVEN_EMOJI", "<:slotsseven:754379369098641429>")
BLANK_EMOJI = os.getenv("SLOTS_BLANK_EMOJI", "<:blank:754381247802900623>")
PAYLINE_MARKER = "👉🏿"
TIMER_EMOJI = "⏲"
CROSS_EMOJI = "❌"

# Seconds before a throttled command message is removed
BLOCKED_DELETE_DELAY = 1.5

WIN_COLOR = 0x43b581
LOSS_COLOR = 0xf04747

SYMBOL_EMOJIS: Dict[Symbol, str] = {
    Symbol.FILLER_A: "🍊",
    Symbol.FILLER_B: "🍌",
    Symbol.FILLER_C: "🍋",
    Symbol.CHERRY: "🍒",
    Symbol.BAR: BAR_EMOJI,
    Symbol.SEVEN: SEVEN_EMOJI,
}


def in_gambling_channel():
    """Restricts a command to GAMBLING_CHANNEL_ID when one is configured."""

    async def predicate(ctx: commands.Context) -> bool:
        return not GAMBLING_CHANNEL_ID or ctx.channel.id == GAMBLING_CHANNEL_ID

    return commands.check(predicate)


def render_grid(grid: Grid) -> str:
    lines = []
    for index, row in enumerate(grid.rows):
        prefix = PAYLINE_MARKER if index == PAYLINE_ROW else BLANK_EMOJI
        lines.append("{} {}".format(prefix, " ".join(SYMBOL_EMOJIS[symbol] for symbol in row)))
    return "\n".join(lines)


def render_rewards(rewards: Sequence[RewardRule]) -> str:
    # Smallest payout first
    return "\n".join("**{}:** {}".format(rule.label, SYMBOL_EMOJIS[rule.symbol] * rule.count)
                     for rule in reversed(rewards))


def result_text(outcome: Settled) -> str:
    if outcome.won:
        return "{}x! Won {} credits".format(outcome.reward.multiplier, format_credits(outcome.delta))
    return "Lost {} credits".format(format_credits(outcome.wager))


def invalid_text(outcome: Invalid, member: discord.Member) -> str:
    if outcome.reason is InvalidBetReason.NO_CREDITS:
        return "you have 0 credits, you can't bet."
    return "{} you have {} credits, you can't bet {}.".format(
        member.mention, format_credits(outcome.balance), format_credits(outcome.wager))


class Slots(commands.Cog, name="Slots"):
    """Three reel slots, paid out on the middle row"""

    def __init__(self, bot: commands.Bot, engine: SpinEngine = None):
        self.bot = bot
        self.engine = engine or SpinEngine(CreditLedger(bot.redis), CooldownGate(bot.cooldowns, COOLDOWN_SECONDS))

    @commands.command()
    @commands.guild_only()
    @in_gambling_channel()
    async def slots(self, ctx: commands.Context, *args: str):
        """Add a bet of credits (or "all") to roll. Use a blank command to see the rewards table."""
        try:
            outcome = await self.engine.play(ctx.guild.id, ctx.author.id, args)
        except LedgerError:
            logger.exception("Slots settlement failed for %s/%s", ctx.guild.id, ctx.author.id)
            return await ctx.reply("something went wrong, slots are temporarily unavailable.")

        if isinstance(outcome, Blocked):
            await ctx.message.add_reaction(TIMER_EMOJI)
            return await ctx.message.delete(delay=BLOCKED_DELETE_DELAY)

        if isinstance(outcome, Info):
            embed: discord.Embed = discord.Embed(title="Slots rewards", description=render_rewards(outcome.rewards))
            return await ctx.send(embed=embed)

        if isinstance(outcome, Invalid):
            if outcome.reason is InvalidBetReason.INSUFFICIENT_CREDITS:
                return await ctx.send(invalid_text(outcome, ctx.author))
            return await ctx.reply(invalid_text(outcome, ctx.author))

        embed: discord.Embed = discord.Embed(
            title="{}'s slots roll".format(ctx.author.display_name),
            description="{}\n\n{}".format(render_grid(outcome.grid), result_text(outcome)),
            color=WIN_COLOR if outcome.won else LOSS_COLOR,
        )
        embed.set_footer(text="You have {} credits now".format(format_credits(outcome.balance)))
        await ctx.send(embed=embed)

        try:
            await ctx.message.delete()
        except discord.HTTPException:
            logger.debug("Could not delete slots message %s", ctx.message.id, exc_info=True)

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CheckFailure):
            await ctx.message.add_reaction(CROSS_EMOJI)
            return
        logger.error("Error in %s: %s", ctx.command, error, exc_info=error)


async def setup(bot: commands.Bot):
    await bot.add_cog(Slots(bot))
