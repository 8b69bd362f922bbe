from __future__ import annotations


class ClientforgeError(Exception):
    """Base class for all errors raised by clientforge."""


class SpecError(ClientforgeError):
    """Raised when an API description cannot be read or understood."""


class SettingsError(ClientforgeError):
    """Raised when client settings are malformed."""


class NameCollisionError(ClientforgeError):
    """Raised when two distinct source names map to the same generated identifier.

    Attributes:
        scope: Where the collision happened (e.g. "parameter of BarClient.get_people")
        name: The generated identifier both sources map to
        sources: The raw source names that collided, in document order
    """

    def __init__(self, scope: str, name: str, sources: tuple[str, ...]) -> None:
        self.scope = scope
        self.name = name
        self.sources = sources
        joined = ", ".join(repr(source) for source in sources)
        super().__init__(f"Name collision in {scope}: {joined} all map to {name!r}")


class GenerationCancelled(ClientforgeError):
    """Raised when the caller cancels a generation run."""
