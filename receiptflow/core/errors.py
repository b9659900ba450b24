"""Error types raised at the edges of the receipt pipeline."""


class MissingInputData(ValueError):
    """The provider payload has no top-level ``result`` object."""


class EnrichmentUnavailable(RuntimeError):
    """The delegated intelligence capability failed or is not configured."""
