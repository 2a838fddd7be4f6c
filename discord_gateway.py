# discord_gateway.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import discord
from discord import app_commands

from errors import MutationError, TransportError
from role_buttons import (
    CREATE_COMMAND,
    CommandInvocation,
    CommandOption,
    ControlActivation,
    Event,
    InteractionProcessor,
    Member,
    MembershipAction,
    MembershipMutation,
    Response,
)
from role_layout import ControlGrid, RoleOption

logger = logging.getLogger(__name__)

# Discord rejects button labels longer than this
MAX_BUTTON_LABEL = 80


# =========================================================
# INBOUND: discord.Interaction -> engine events
# =========================================================

def _option_value(raw: Dict[str, Any], resolved_roles: Dict[str, Any]) -> Any:
    kind = raw.get("type")
    value = raw.get("value")

    if kind == discord.AppCommandOptionType.string.value:
        return value

    if kind == discord.AppCommandOptionType.role.value:
        role = resolved_roles.get(str(value))
        if not role:
            return None
        return RoleOption(id=int(role["id"]), name=role.get("name", ""))

    # anything else is handed through untouched so validation can reject it
    return raw


def command_options(data: Dict[str, Any]) -> Tuple[CommandOption, ...]:
    resolved_roles = (data.get("resolved") or {}).get("roles") or {}
    return tuple(
        CommandOption(name=raw.get("name", ""), value=_option_value(raw, resolved_roles))
        for raw in data.get("options") or []
    )


def _member_of(interaction: discord.Interaction) -> Optional[Member]:
    user = interaction.user
    if interaction.guild_id is None or not isinstance(user, discord.Member):
        return None
    return Member(
        guild_id=interaction.guild_id,
        user_id=user.id,
        role_ids=frozenset(r.id for r in user.roles),
    )


def to_event(interaction: discord.Interaction) -> Optional[Event]:
    data = interaction.data or {}

    if interaction.type == discord.InteractionType.application_command:
        return CommandInvocation(
            handle=interaction,
            command_name=data.get("name", ""),
            options=command_options(data),
        )

    if interaction.type == discord.InteractionType.component:
        return ControlActivation(
            handle=interaction,
            custom_id=str(data.get("custom_id", "")),
            member=_member_of(interaction),
            is_button=data.get("component_type") == discord.ComponentType.button.value,
        )

    return None


# =========================================================
# OUTBOUND: responses + role changes
# =========================================================

class RoleButtonsView(discord.ui.View):
    """Buttons only; presses are answered from on_interaction.

    Not dispatchable, so discord.py never keeps it in its view store.
    """

    def is_dispatchable(self) -> bool:
        return False


def build_view(grid: ControlGrid) -> discord.ui.View:
    view = RoleButtonsView(timeout=None)
    for row_index, row in enumerate(grid):
        for control in row:
            view.add_item(
                discord.ui.Button(
                    style=discord.ButtonStyle.success,
                    label=control.label[:MAX_BUTTON_LABEL],
                    custom_id=control.custom_id,
                    row=row_index,
                )
            )
    return view


class DiscordGateway:
    def __init__(self, client: discord.Client):
        self.client = client

    async def send_response(self, handle: discord.Interaction, response: Response) -> None:
        kwargs: Dict[str, Any] = {
            "content": response.content,
            "ephemeral": response.ephemeral,
        }
        if response.components:
            kwargs["view"] = build_view(response.components)

        try:
            await handle.response.send_message(**kwargs)
        except (discord.HTTPException, discord.InteractionResponded) as e:
            raise TransportError(f"Couldn't send interaction response: {e}") from e

    async def mutate_membership(self, mutation: MembershipMutation) -> None:
        if mutation.action is MembershipAction.ADD:
            call = self.client.http.add_role
        else:
            call = self.client.http.remove_role

        try:
            await call(
                mutation.guild_id,
                mutation.member_id,
                mutation.role_id,
                reason=mutation.reason,
            )
        except discord.HTTPException as e:
            raise MutationError(
                f"Couldn't {mutation.action.value} role {mutation.role_id}: {e}"
            ) from e


# =========================================================
# COMMAND SCHEMA
# =========================================================

def setup(tree: app_commands.CommandTree, processor: InteractionProcessor):

    @tree.command(
        name=CREATE_COMMAND,
        description="Create a new role-giver button"
    )
    @app_commands.describe(
        message="The message that will be displayed above buttons",
        role1="Role",
        role2="Role",
        role3="Role",
        role4="Role",
        role5="Role",
        role6="Role",
        role7="Role",
        role8="Role",
        role9="Role",
    )
    async def create(
        interaction: discord.Interaction,
        message: str,
        role1: discord.Role,
        role2: Optional[discord.Role] = None,
        role3: Optional[discord.Role] = None,
        role4: Optional[discord.Role] = None,
        role5: Optional[discord.Role] = None,
        role6: Optional[discord.Role] = None,
        role7: Optional[discord.Role] = None,
        role8: Optional[discord.Role] = None,
        role9: Optional[discord.Role] = None,
    ):
        # the typed arguments are ignored; validation runs on the raw options
        # so it sees them in the order the user supplied them
        event = to_event(interaction)
        if event is not None:
            await processor.process(event)


async def register_command_schema(tree: app_commands.CommandTree) -> bool:
    try:
        synced = await tree.sync()
    except (discord.HTTPException, app_commands.CommandSyncFailure) as e:
        logger.error("Error sending commands: %s", e)
        return False

    logger.info("Commands have been sent successfully (%d).", len(synced))
    return True
