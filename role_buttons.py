# role_buttons.py
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, Optional, Protocol, Sequence, Tuple, Union

from errors import ActivationError, MutationError, TransportError, ValidationError
from role_layout import ControlGrid, RoleOption, layout

logger = logging.getLogger(__name__)

# =========================================================
# CONFIG
# =========================================================

CREATE_COMMAND = "create"
MAX_ROLES = 9
# message + roles
MAX_OPTIONS = MAX_ROLES + 1

MUTATION_REASON = "Role Buttons"

_MAX_SNOWFLAKE = 2**64 - 1


# =========================================================
# EVENTS
# =========================================================

@dataclass(frozen=True)
class CommandOption:
    name: str
    value: Any


@dataclass(frozen=True)
class CommandInvocation:
    handle: Any
    command_name: str
    options: Tuple[CommandOption, ...] = ()


@dataclass(frozen=True)
class Member:
    guild_id: int
    user_id: int
    role_ids: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class ControlActivation:
    handle: Any
    custom_id: str
    member: Optional[Member] = None
    is_button: bool = True


Event = Union[CommandInvocation, ControlActivation]


# =========================================================
# OUTCOMES
# =========================================================

@dataclass(frozen=True)
class Response:
    content: str
    ephemeral: bool = False
    components: Optional[ControlGrid] = None


class MembershipAction(enum.Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class MembershipMutation:
    guild_id: int
    member_id: int
    role_id: int
    action: MembershipAction
    reason: str = MUTATION_REASON

    @classmethod
    def toggle(cls, member: Member, role_id: int) -> "MembershipMutation":
        action = MembershipAction.REMOVE if role_id in member.role_ids else MembershipAction.ADD
        return cls(member.guild_id, member.user_id, role_id, action)


class PlatformGateway(Protocol):
    async def send_response(self, handle: Any, response: Response) -> None:
        ...

    async def mutate_membership(self, mutation: MembershipMutation) -> None:
        ...


# =========================================================
# /create ARGUMENTS
# =========================================================

@dataclass(frozen=True)
class CreateRequest:
    message: str
    roles: Tuple[RoleOption, ...]

    @classmethod
    def from_options(cls, options: Sequence[CommandOption]) -> "CreateRequest":
        if not options:
            raise ValidationError("No role has been provided")
        if len(options) > MAX_OPTIONS:
            raise ValidationError("Too many roles")

        first, rest = options[0], options[1:]
        if first.value is None:
            raise ValidationError("Message parameter missing")
        if not isinstance(first.value, str):
            raise ValidationError("Message is not a string")

        roles = []
        for option in rest:
            if not isinstance(option.value, RoleOption):
                raise ValidationError(f"`{option.name}` is not a role")
            roles.append(option.value)

        if not roles:
            raise ValidationError("No role has been provided")

        return cls(message=first.value, roles=tuple(roles))


def error_response(message: str, ephemeral: bool = False) -> Response:
    return Response(f"❌ Error: {message}", ephemeral=ephemeral)


# =========================================================
# BUTTON PRESSES
# =========================================================

def parse_role_id(custom_id: str) -> int:
    if not (custom_id.isascii() and custom_id.isdigit()):
        raise ActivationError("Invalid role")
    role_id = int(custom_id)
    if role_id > _MAX_SNOWFLAKE:
        raise ActivationError("Invalid role")
    return role_id


def resolve_activation(event: ControlActivation) -> Tuple[Member, int]:
    if not event.is_button:
        raise ActivationError("Invalid")

    role_id = parse_role_id(event.custom_id)

    if event.member is None:
        raise ActivationError("Invalid")

    return event.member, role_id


def mutation_result_text(action: MembershipAction, ok: bool) -> str:
    if ok:
        done = "added" if action is MembershipAction.ADD else "removed"
        return f"✅ Successfully {done} role!"
    return f"❌ Error: Couldn't {action.value} role!"


# =========================================================
# PROCESSOR
# =========================================================

class InteractionProcessor:
    """Turns interaction events into responses and role changes.

    Holds nothing but the gateway, so events can be processed concurrently.
    """

    def __init__(self, gateway: PlatformGateway):
        self.gateway = gateway

    async def process(self, event: Event) -> None:
        match event:
            case CommandInvocation():
                await self.handle_command(event)
            case ControlActivation():
                await self.handle_activation(event)
            case _:
                raise TypeError(f"Unsupported event: {event!r}")

    async def handle_command(self, event: CommandInvocation) -> None:
        if event.command_name != CREATE_COMMAND:
            return await self._reply(event.handle, error_response("Invalid command"))

        try:
            request = CreateRequest.from_options(event.options)
        except ValidationError as e:
            return await self._reply(event.handle, error_response(str(e)))

        await self._reply(
            event.handle,
            Response(request.message, components=layout(request.roles)),
        )

    async def handle_activation(self, event: ControlActivation) -> None:
        try:
            member, role_id = resolve_activation(event)
        except ActivationError as e:
            return await self._reply(event.handle, error_response(str(e), ephemeral=True))

        mutation = MembershipMutation.toggle(member, role_id)
        try:
            await self.gateway.mutate_membership(mutation)
        except MutationError:
            logger.warning(
                "Couldn't %s role %s for member %s in guild %s",
                mutation.action.value, mutation.role_id, mutation.member_id, mutation.guild_id,
                exc_info=True,
            )
            ok = False
        else:
            ok = True

        await self._reply(
            event.handle,
            Response(mutation_result_text(mutation.action, ok), ephemeral=True),
        )

    async def _reply(self, handle: Any, response: Response) -> None:
        try:
            await self.gateway.send_response(handle, response)
        except TransportError:
            logger.exception("Couldn't send interaction response")
