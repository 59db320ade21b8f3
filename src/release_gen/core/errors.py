class ReleaseGenError(Exception):
    """Base class for failures that abort generation."""

    kind = "error"


class ModelError(ReleaseGenError):
    """The class model is inconsistent and no plan can be derived for it."""

    kind = "model"


class EmissionError(ReleaseGenError):
    kind = "emission"


class MalformedIdentifierError(EmissionError):
    pass


class UnsupportedMemberError(EmissionError):
    pass


class SourceError(ReleaseGenError):
    """An input path could not be read or is of an unsupported kind."""

    kind = "source"
