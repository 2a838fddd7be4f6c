# errors.py


class RoleButtonsError(Exception):
    """Base class for everything the role buttons bot raises on purpose."""


class ValidationError(RoleButtonsError):
    """The /create arguments are malformed. Shown to the invoking user."""


class ActivationError(RoleButtonsError):
    """A button press can't be resolved to a member and a role."""


class MutationError(RoleButtonsError):
    """Discord refused to add or remove a role."""


class TransportError(RoleButtonsError):
    """A response couldn't be delivered back to Discord."""


class StartupError(RoleButtonsError):
    """Configuration needed to start the bot is missing."""
