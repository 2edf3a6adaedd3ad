import os
import random
import time
from typing import List

from discord.ext import commands

from modules.cooldown import CooldownGate

COOLDOWN_SECONDS = 4
TIMER_EMOJI = "⏲"
CROSS_EMOJI = "❌"
IDK_EMOJI = os.getenv("EIGHTBALL_IDK_EMOJI", "<:idk:779729222658424862>")

ANSWERS: List[str] = ["it is certain.",
                      "it is decidedly so.",
                      "without a doubt.",
                      "yes - definitely.",
                      "you may rely on it.",
                      "as I see it, yes.",
                      "most likely.",
                      "outlook good.",
                      "yes.",
                      "signs point to yes.",
                      IDK_EMOJI,
                      "don't count on it.",
                      "my reply is no.",
                      "my sources say no.",
                      "outlook not so good.",
                      "very doubtful."]


class EightBall(commands.Cog, name="Magic 8 Ball"):
    def __init__(self, bot: commands.Bot, gate: CooldownGate = None):
        self.bot = bot
        self.gate = gate or CooldownGate(bot.cooldowns, COOLDOWN_SECONDS)

    @commands.command(name="8", aliases=["8ball"])
    @commands.guild_only()
    async def eightball(self, ctx: commands.Context, *, question: str = None):
        """Calls upon the magic eight ball"""
        # Needs an actual question
        if not question or len(question.split()) < 2:
            return await ctx.message.add_reaction(CROSS_EMOJI)

        key = "8ball-delay-{}".format(ctx.author.id)
        now = time.time()
        if not self.gate.check(key, now):
            await ctx.message.add_reaction(TIMER_EMOJI)
            return await ctx.message.delete(delay=COOLDOWN_SECONDS)

        self.gate.arm(key, now)
        return await ctx.reply(random.choice(ANSWERS))


async def setup(bot: commands.Bot):
    await bot.add_cog(EightBall(bot))
