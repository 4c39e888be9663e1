"""
Discord front-end for the quiz server.

Each /quiz invocation opens its own connection to the quiz server and shows
the question with a four-option select menu plus Check and Next buttons.
"""
import asyncio
import logging
import os
from typing import List, Optional, Set

import discord
from discord.ext import commands

from .client import QuizConnection, QuizConnectionError
from .models import OPTION_LETTERS, ServerAddress
from .protocol import CommandKind, MessageKind, parse_question_payload


logger = logging.getLogger(__name__)

SELECT_LABEL_LIMIT = 100
EMBED_COLOR = 0x6699ff
END_COLOR = 0x00ff00
ERROR_COLOR = 0xff0000


def _placeholder_options() -> List[discord.SelectOption]:
    return [
        discord.SelectOption(label=letter.upper(), value=letter)
        for letter in OPTION_LETTERS
    ]


class QuizView(discord.ui.View):
    """
    Answer panel for one quiz connection.

    The select menu and Check stay disabled until a question arrives.
    After feedback only Next is enabled; END disables everything.
    """

    def __init__(self, connection: QuizConnection):
        super().__init__(timeout=None)
        self.connection = connection
        self.message: Optional[discord.Message] = None
        self.prompt = "Waiting for the server..."
        self.options: List[str] = []
        self.status = ""
        self.selected: Optional[str] = None
        self.finished = False

    @discord.ui.select(
        placeholder="Choose an answer",
        min_values=1,
        max_values=1,
        options=_placeholder_options(),
        disabled=True
    )
    async def choose(self, interaction: discord.Interaction, select: discord.ui.Select):
        self.selected = select.values[0]
        await interaction.response.defer()

    @discord.ui.button(label="Check", style=discord.ButtonStyle.primary, disabled=True)
    async def check(self, interaction: discord.Interaction, button: discord.ui.Button):
        if self.selected is None:
            await interaction.response.send_message("Please select an answer.", ephemeral=True)
            return

        await interaction.response.defer()
        await self._send(f"{CommandKind.ANSWER.value}:{self.selected}")

    @discord.ui.button(label="Next", style=discord.ButtonStyle.secondary, disabled=True)
    async def next_question(self, interaction: discord.Interaction, button: discord.ui.Button):
        await interaction.response.defer()
        await self._send(CommandKind.NEXT.value)

    async def _send(self, command: str) -> None:
        try:
            await self.connection.send(command)
        except QuizConnectionError as e:
            logger.warning(f"Failed to send {command}: {e}")
            self.show_connection_lost()
            await self.refresh()

    def show_question(self, payload: str) -> None:
        try:
            prompt, options = parse_question_payload(payload)
        except ValueError as e:
            logger.error(f"Ignoring malformed question: {e}")
            self.status = "Received an invalid question."
            return

        self.prompt = prompt
        self.options = options
        self.status = ""
        self.selected = None
        self.choose.options = [
            discord.SelectOption(
                label=f"{letter.upper()}) {option}"[:SELECT_LABEL_LIMIT],
                value=letter
            )
            for letter, option in zip(OPTION_LETTERS, options)
        ]
        self.choose.disabled = False
        self.check.disabled = False
        self.next_question.disabled = True

    def show_feedback(self, payload: str) -> None:
        self.status = payload
        self.choose.disabled = True
        self.check.disabled = True
        self.next_question.disabled = False

    def show_notice(self, payload: str) -> None:
        self.status = payload

    def show_end(self, payload: str) -> None:
        self.status = payload
        self.finished = True
        self._disable_all()

    def show_connection_lost(self) -> None:
        self.status = "Connection lost."
        self.finished = True
        self._disable_all()

    def _disable_all(self) -> None:
        for item in self.children:
            item.disabled = True

    def build_embed(self) -> discord.Embed:
        color = END_COLOR if self.finished else EMBED_COLOR
        if self.status == "Connection lost.":
            color = ERROR_COLOR

        embed = discord.Embed(title="Quiz Game", description=self.prompt, color=color)
        for letter, option in zip(OPTION_LETTERS, self.options):
            embed.add_field(name=letter.upper(), value=option or "\u200b", inline=False)
        if self.status:
            embed.set_footer(text=self.status)
        return embed

    async def refresh(self) -> None:
        """Push the current state to the Discord message."""
        if self.message is None:
            return
        try:
            await self.message.edit(embed=self.build_embed(), view=self)
        except discord.HTTPException as e:
            logger.error(f"Failed to update quiz message: {e}")


class QuizRelay:
    """Feeds server lines from one connection into its QuizView."""

    def __init__(self, connection: QuizConnection, view: QuizView):
        self.connection = connection
        self.view = view

    async def run(self) -> None:
        try:
            while True:
                message = await self.connection.receive()
                if message is None:
                    if not self.view.finished:
                        self.view.show_connection_lost()
                        await self.view.refresh()
                    return

                if message.kind is MessageKind.QUESTION:
                    self.view.show_question(message.payload)
                elif message.kind is MessageKind.FEEDBACK:
                    self.view.show_feedback(message.payload)
                elif message.kind is MessageKind.END:
                    self.view.show_end(message.payload)
                else:
                    self.view.show_notice(message.payload)
                await self.view.refresh()

                if message.kind is MessageKind.END:
                    return
        except QuizConnectionError as e:
            logger.warning(f"Quiz relay stopped: {e}")
            self.view.show_connection_lost()
            await self.view.refresh()
        finally:
            await self.connection.close()
            self.view.stop()


class QuizFrontendBot(commands.Bot):
    """Discord bot that lets users play against a quiz server."""

    def __init__(self, address: ServerAddress):
        intents = discord.Intents.none()
        intents.guilds = True  # Required for slash commands

        super().__init__(command_prefix='!', intents=intents, help_command=None)
        self.server_address = address
        self._relays: Set[asyncio.Task] = set()

    async def setup_hook(self):
        """Called when the bot is starting up"""
        @self.tree.command(name="quiz", description="Play a quiz round against the quiz server")
        async def quiz_command(interaction: discord.Interaction):
            await self.handle_quiz(interaction)

        logger.info("Slash commands registered successfully")

    async def on_ready(self):
        logger.info(f"Bot is ready! Logged in as {self.user}")
        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

    async def handle_quiz(self, interaction: discord.Interaction):
        # Connecting can outlast the interaction deadline
        try:
            await interaction.response.defer()
        except discord.HTTPException as e:
            logger.error(f"Failed to acknowledge quiz command: {e}")
            return

        try:
            connection = await QuizConnection.open(self.server_address)
        except QuizConnectionError:
            await self.send_error_response(interaction, "Could not connect to the server.")
            return

        view = QuizView(connection)
        try:
            view.message = await interaction.followup.send(
                embed=view.build_embed(), view=view, wait=True
            )
        except discord.HTTPException as e:
            logger.error(f"Failed to show quiz panel: {e}")
            view.stop()
            await connection.close()
            return

        task = asyncio.create_task(QuizRelay(connection, view).run())
        self._relays.add(task)
        task.add_done_callback(self._relays.discard)

        try:
            await connection.send(CommandKind.START.value)
        except QuizConnectionError as e:
            logger.warning(f"Failed to start quiz: {e}")

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        try:
            embed = discord.Embed(title=title, description=message, color=ERROR_COLOR)
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send error response to user")

    async def close(self):
        for task in list(self._relays):
            task.cancel()
        await super().close()


async def run_bot(address: ServerAddress, token: Optional[str] = None):
    """Run the Discord front-end with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizFrontendBot(address)
    try:
        logger.info("Starting Discord quiz front-end...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
