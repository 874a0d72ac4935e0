"""Exceptions raised by the live intelligence pipeline."""


class IntelError(Exception):
    """Base class for pipeline errors."""


class ReportSourceError(IntelError):
    """The external event index could not be queried. Fatal to a run."""


class ClassifierError(IntelError):
    """The incident classifier failed or answered with an unusable payload."""


class BriefingError(IntelError):
    """The briefing generator failed or answered with an unusable payload."""


class PipelineTimeout(IntelError):
    """A coalesced request gave up waiting for the in-flight run."""
