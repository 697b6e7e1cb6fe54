"""Exceptions raised by the nojo installer."""


class NojoError(Exception):
    """Base class for all nojo errors."""


class ConfigurationError(NojoError):
    """Raised when the resolved configuration cannot drive an operation.

    Covers unknown agents, unresolvable profiles, and non-interactive runs
    without an existing configuration or an explicit profile. Raised before
    any filesystem mutation takes place.

    Attributes:
        hint: Actionable next step shown to the user, if any.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Description of what is misconfigured.
            hint: Optional next step (e.g. "Run 'nojo install --profile senior-swe'").
        """
        self.hint = hint
        super().__init__(message)


class ProfileNotFoundError(ConfigurationError):
    """Raised when a named profile is neither installed nor bundled.

    Attributes:
        profile_name: The profile that could not be resolved.
    """

    def __init__(self, profile_name: str, available: list[str] | None = None) -> None:
        """Initialize ProfileNotFoundError.

        Args:
            profile_name: The profile that could not be resolved.
            available: Profile names that do exist, used to build the hint.
        """
        self.profile_name = profile_name
        hint = None
        if available:
            hint = f"Available profiles: {', '.join(available)}"
        super().__init__(f"Profile '{profile_name}' not found.", hint=hint)


class InvalidProfileNameError(NojoError):
    """Raised when a profile name is not directory-name-safe or is reserved."""
