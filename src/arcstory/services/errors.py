"""Service-layer exceptions."""


class CyclicGraphError(Exception):
    """Raised when branch/jumper resolution loops or exceeds the hop limit."""

    def __init__(self, message: str, chain: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.chain = chain


class SaveLoadError(Exception):
    """Raised when save or restore operations fail."""
