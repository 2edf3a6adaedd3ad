import os

import discord
import redis.asyncio as redis
from discord.ext import commands

from modules.cooldown import MemoryRegistry

import logging
discord.utils.setup_logging(level=logging.INFO, root=True)
logger = logging.getLogger(__name__)

discord_key: str = os.getenv("DISCORD_KEY")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))

bepsibot_modules = ["modules.8ball", "modules.credits", "modules.slots"]

intents = discord.Intents.default()
intents.guilds = True
intents.members = True
intents.emojis = True
intents.guild_messages = True
intents.guild_reactions = True
intents.message_content = True


class Bepsibot(commands.Bot):
    def __init__(self):
        super().__init__(command_prefix="!", intents=intents, description="Bepsibot")
        self.cooldowns = MemoryRegistry()

    async def setup_hook(self) -> None:
        self.redis = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, db=REDIS_DB, decode_responses=True)
        await self.init_bot()

    async def on_ready(self):
        logger.info(f'Logged in as: {self.user.name} - {self.user.id}')
        logger.info(f'Version: {discord.__version__}')
        logger.info(f'Successfully logged in and booted...!')

    async def close(self):
        await super().close()
        await self.redis.aclose()

    async def init_bot(self):
        for module in bepsibot_modules:
            try:
                await self.load_extension(module)
                logger.info("Loaded: {}".format(module))
            except commands.ExtensionError as error:
                logger.error(f"Error loading {module}: %s", error, exc_info=True)


if __name__ == '__main__':
    if not discord_key:
        print("You must set the DISCORD_KEY env variable.")
        exit()
    bot = Bepsibot()
    bot.run(discord_key, log_handler=None)
else:
    print("This module is the bot entry point and is not meant to be imported.")
    exit()
