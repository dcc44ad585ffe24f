# /moviegraph/errors.py

class MovieGraphError(Exception):
    """Base class for failures raised while resolving a movie graph request."""


class NotFound(MovieGraphError):
    """A required lookup produced no result."""


class InvalidArgument(MovieGraphError, ValueError):
    """
    A caller-supplied reference does not resolve. The message is shown to the
    caller verbatim, so keep it free of internal detail.
    """


class AmbiguousMatch(InvalidArgument):
    """A natural-key lookup (title, name) matched more than one node."""


class CoercionError(MovieGraphError, ValueError):
    """A scalar value could not be converted to or from its wire form."""
