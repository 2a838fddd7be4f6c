import logging
from threading import Thread
from typing import Any, Dict

import discord
from discord.ext import commands
from flask import Flask

import runtime_logger
from discord_gateway import DiscordGateway, register_command_schema, to_event
from discord_gateway import setup as create_command_setup
from errors import StartupError
from role_buttons import CommandInvocation, InteractionProcessor
from settings import load_settings

logger = logging.getLogger(__name__)

# ===== Discord Client =====
# buttons and slash commands need no privileged intents
intents = discord.Intents.default()


class RoleButtonsBot(commands.Bot):
    def __init__(self, settings: Dict[str, Any]):
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)
        self.settings = settings
        self.gateway = DiscordGateway(self)
        self.processor = InteractionProcessor(self.gateway)

    # ---------------- SETUP ----------------
    async def setup_hook(self):
        # /create
        create_command_setup(self.tree, self.processor)

        # Sync once; a failure is logged and the bot keeps running
        await register_command_schema(self.tree)

    # ---------------- READY ----------------
    async def on_ready(self):
        logger.info("%s is connected!", self.user)
        await runtime_logger.log_startup(self, self.settings)

    # ---------------- INTERACTIONS ----------------
    async def on_interaction(self, interaction: discord.Interaction):
        # known slash commands are routed through the command tree
        if interaction.type == discord.InteractionType.application_command:
            name = (interaction.data or {}).get("name", "")
            if self.tree.get_command(name) is not None:
                return

        event = to_event(interaction)
        if event is None:
            return
        if isinstance(event, CommandInvocation):
            logger.info("Unknown command %r from %s", event.command_name, interaction.user)

        await self.processor.process(event)

    # ---------------- ERRORS ----------------
    async def on_error(self, event_method: str, /, *args, **kwargs):
        await super().on_error(event_method, *args, **kwargs)
        await runtime_logger.log_error(self, self.settings, event_method)


# ===== Flask keep-alive =====
app = Flask("role-buttons")


@app.route("/")
def home():
    return "🔘 Role Buttons is alive!"


def run_flask(port: int):
    app.run(host="0.0.0.0", port=port)


def main():
    try:
        settings = load_settings()
    except StartupError as e:
        raise SystemExit(f"Startup failed: {e}")

    if settings["keep_alive"]:
        Thread(target=run_flask, args=(settings["port"],), daemon=True).start()

    client = RoleButtonsBot(settings)
    client.run(settings["token"], log_level=settings["log_level"], root_logger=True)


if __name__ == "__main__":
    main()
