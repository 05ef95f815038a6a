"""Error kinds raised by the letter pipeline.

Every stage aborts the whole run on failure; the CLI turns any
:class:`LetterError` into a non-zero exit status.
"""

from __future__ import annotations


class LetterError(RuntimeError):
    """Base class for all pipeline failures."""


class ConfigError(LetterError):
    """A configuration value could not be interpreted."""


class ContextError(LetterError):
    """A context directory could not be allocated."""


class TransportError(LetterError):
    """The model endpoint was unreachable or answered with an error."""


class EmptyInputError(LetterError):
    """Raw or produced text was blank after trimming."""


class ParseError(LetterError):
    """The model response held no usable JSON object."""


class DependencyMissing(LetterError):
    """A required external collaborator is not installed."""
