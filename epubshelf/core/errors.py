class ShelfError(Exception):
    pass


class MetadataExtractionFailed(ShelfError):
    """The EPUB parser could not produce title/author metadata."""


class NotFound(ShelfError):
    pass


class Unauthenticated(ShelfError):
    """A remote operation was attempted without a user session."""


class RemoteUnavailable(ShelfError):
    """Network or backend failure, as opposed to a clean "no data" answer."""
