import pytest

from role_buttons import (
    CommandInvocation,
    CommandOption,
    ControlActivation,
    CreateRequest,
    Member,
    MembershipAction,
    parse_role_id,
)
from errors import ActivationError, ValidationError
from role_layout import RoleOption


def create_options(message, roles):
    opts = [CommandOption("message", message)]
    opts += [CommandOption(f"role{i}", r) for i, r in enumerate(roles, start=1)]
    return tuple(opts)


# ---------------------------------------------------------------------------
# /create argument validation
# ---------------------------------------------------------------------------


class TestCreateRequest:
    def test_valid_request(self, make_roles):
        roles = make_roles(3)
        request = CreateRequest.from_options(create_options("Pick one", roles))
        assert request.message == "Pick one"
        assert request.roles == tuple(roles)

    def test_no_arguments(self):
        with pytest.raises(ValidationError, match="No role has been provided"):
            CreateRequest.from_options(())

    def test_message_without_roles(self):
        with pytest.raises(ValidationError, match="No role has been provided"):
            CreateRequest.from_options(create_options("hi", []))

    def test_nine_roles_is_the_limit(self, make_roles):
        assert len(CreateRequest.from_options(create_options("m", make_roles(9))).roles) == 9

    def test_too_many_roles(self, make_roles):
        with pytest.raises(ValidationError, match="Too many roles"):
            CreateRequest.from_options(create_options("m", make_roles(10)))

    def test_message_not_a_string(self, make_roles):
        opts = (CommandOption("message", 5),) + create_options("m", make_roles(1))[1:]
        with pytest.raises(ValidationError, match="Message is not a string"):
            CreateRequest.from_options(opts)

    def test_message_missing(self, make_roles):
        opts = (CommandOption("message", None),) + create_options("m", make_roles(1))[1:]
        with pytest.raises(ValidationError, match="Message parameter missing"):
            CreateRequest.from_options(opts)

    def test_names_the_first_non_role(self, make_roles):
        roles = make_roles(2) + ["not a role", 7]
        with pytest.raises(ValidationError) as exc:
            CreateRequest.from_options(create_options("m", roles))
        assert str(exc.value) == "`role3` is not a role"


class TestCommandPath:
    @pytest.mark.asyncio
    async def test_success_sends_public_grid(self, processor, gateway, make_roles):
        roles = make_roles(7)
        await processor.process(CommandInvocation("h", "create", create_options("Pick", roles)))

        ((handle, response),) = gateway.responses
        assert handle == "h"
        assert response.content == "Pick"
        assert not response.ephemeral
        assert [len(row) for row in response.components] == [5, 2]
        assert gateway.mutations == []

    @pytest.mark.asyncio
    async def test_validation_failure_sends_one_error(self, processor, gateway):
        await processor.process(CommandInvocation("h", "create", ()))

        ((_, response),) = gateway.responses
        assert response.content == "❌ Error: No role has been provided"
        assert response.components is None

    @pytest.mark.asyncio
    async def test_too_many_arguments(self, processor, gateway, make_roles):
        await processor.process(CommandInvocation("h", "create", create_options("m", make_roles(10))))
        assert gateway.responses[0][1].content == "❌ Error: Too many roles"

    @pytest.mark.asyncio
    async def test_unknown_command(self, processor, gateway):
        await processor.process(CommandInvocation("h", "delete", ()))
        assert gateway.responses[0][1].content == "❌ Error: Invalid command"

    @pytest.mark.asyncio
    async def test_identical_requests_give_identical_grids(self, processor, gateway, make_roles):
        opts = create_options("Pick", make_roles(6))
        await processor.process(CommandInvocation("a", "create", opts))
        await processor.process(CommandInvocation("b", "create", opts))

        first, second = (r.components for _, r in gateway.responses)
        assert first == second

    @pytest.mark.asyncio
    async def test_transport_failure_is_swallowed(self, processor, gateway, make_roles, caplog):
        gateway.fail_responses = True
        await processor.process(CommandInvocation("h", "create", create_options("m", make_roles(1))))
        assert "Couldn't send interaction response" in caplog.text


# ---------------------------------------------------------------------------
# Button presses
# ---------------------------------------------------------------------------


def member(*role_ids):
    return Member(guild_id=1, user_id=2, role_ids=frozenset(role_ids))


class TestActivationPath:
    def test_parse_role_id(self):
        assert parse_role_id("42") == 42
        for bad in ("abc", "", "-1", "4.2", " 42", str(2**64)):
            with pytest.raises(ActivationError, match="Invalid role"):
                parse_role_id(bad)

    @pytest.mark.asyncio
    async def test_non_numeric_id(self, processor, gateway):
        await processor.process(ControlActivation("h", "abc", member()))

        assert gateway.mutations == []
        ((_, response),) = gateway.responses
        assert response.content == "❌ Error: Invalid role"
        assert response.ephemeral

    @pytest.mark.asyncio
    async def test_missing_member(self, processor, gateway):
        await processor.process(ControlActivation("h", "42", None))

        assert gateway.mutations == []
        assert gateway.responses[0][1].content == "❌ Error: Invalid"
        assert gateway.responses[0][1].ephemeral

    @pytest.mark.asyncio
    async def test_non_button_component(self, processor, gateway):
        await processor.process(ControlActivation("h", "42", member(), is_button=False))

        assert gateway.mutations == []
        assert gateway.responses[0][1].content == "❌ Error: Invalid"

    @pytest.mark.asyncio
    async def test_removes_role_member_has(self, processor, gateway):
        await processor.process(ControlActivation("h", "42", member(42, 7)))

        ((mutation,)) = gateway.mutations
        assert mutation.action is MembershipAction.REMOVE
        assert (mutation.guild_id, mutation.member_id, mutation.role_id) == (1, 2, 42)
        assert mutation.reason == "Role Buttons"
        ((_, response),) = gateway.responses
        assert response.content == "✅ Successfully removed role!"
        assert response.ephemeral

    @pytest.mark.asyncio
    async def test_adds_missing_role(self, processor, gateway):
        await processor.process(ControlActivation("h", "99", member(42)))

        assert gateway.mutations[0].action is MembershipAction.ADD
        assert gateway.responses[0][1].content == "✅ Successfully added role!"

    @pytest.mark.asyncio
    async def test_failed_add_is_reported_once(self, processor, gateway, caplog):
        gateway.fail_mutations = True
        await processor.process(ControlActivation("h", "99", member()))

        assert len(gateway.mutations) == 1
        assert gateway.mutations[0].action is MembershipAction.ADD
        ((_, response),) = gateway.responses
        assert response.content == "❌ Error: Couldn't add role!"
        assert response.ephemeral
        assert "Missing Permissions" not in response.content
        assert "Couldn't add role 99" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_remove(self, processor, gateway):
        gateway.fail_mutations = True
        await processor.process(ControlActivation("h", "42", member(42)))
        assert gateway.responses[0][1].content == "❌ Error: Couldn't remove role!"


@pytest.mark.asyncio
async def test_unsupported_event(processor):
    with pytest.raises(TypeError):
        await processor.process(object())


def test_role_option_is_immutable():
    role = RoleOption(id=1, name="a")
    with pytest.raises(AttributeError):
        role.name = "b"
