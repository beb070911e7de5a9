"""Exception hierarchy for the Yumemachi Canvas service."""


class YumemachiError(Exception):
    """Base class for all service errors."""

    pass


class ValidationError(YumemachiError):
    """User-friendly validation error.

    Raised when user input fails validation, before any vendor is called.
    The message is intended to be displayed directly to the user.
    """

    pass


class CollaboratorError(YumemachiError):
    """A vendor API call failed.

    Covers non-success HTTP status, transport failures, unparseable bodies,
    and responses that parse but carry no usable payload.
    """

    pass


class PromptGenerationError(CollaboratorError):
    """The text-completion collaborator errored or returned no completion.

    Generation must abort when this is raised; substituting a default prompt
    would produce an image unrelated to what the visitor asked for.
    """

    pass


class SessionStateError(YumemachiError):
    """An illegal kiosk screen transition was attempted."""

    pass


class MissingCredentialsError(CollaboratorError):
    """A vendor credential needed for this call is not configured."""

    pass
