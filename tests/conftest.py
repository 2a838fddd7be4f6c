from typing import Any, List, Tuple

import pytest

from errors import MutationError, TransportError
from role_buttons import InteractionProcessor, MembershipMutation, Response
from role_layout import RoleOption


class FakeGateway:
    """In-memory gateway recording everything the processor asks for."""

    def __init__(self, fail_mutations: bool = False, fail_responses: bool = False):
        self.fail_mutations = fail_mutations
        self.fail_responses = fail_responses
        self.responses: List[Tuple[Any, Response]] = []
        self.mutations: List[MembershipMutation] = []

    async def send_response(self, handle, response):
        if self.fail_responses:
            raise TransportError("interaction expired")
        self.responses.append((handle, response))

    async def mutate_membership(self, mutation):
        self.mutations.append(mutation)
        if self.fail_mutations:
            raise MutationError("Missing Permissions")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def processor(gateway):
    return InteractionProcessor(gateway)


@pytest.fixture
def make_roles():
    def _make(n: int) -> List[RoleOption]:
        return [RoleOption(id=1000 + i, name=f"Role {i}") for i in range(1, n + 1)]
    return _make
