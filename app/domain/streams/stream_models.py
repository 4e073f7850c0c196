"""Stream domain models."""

from dataclasses import dataclass, field

from loguru import logger

from app.domain.streams.platforms import Platform


class DisplayName:
    """Write-once holder for a stream's human-readable label.

    The value comes from third-party pages and is not HTML safe.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str | None = None) -> None:
        self._value = value or None

    @property
    def value(self) -> str | None:
        return self._value

    def is_set(self) -> bool:
        return self._value is not None

    def set(self, value: str | None) -> bool:
        """Store `value` unless a name is already present.

        Returns:
            True if the value was stored, False if ignored
        """
        if not value or self._value is not None:
            return False
        self._value = value
        return True

    def __repr__(self) -> str:
        return f"DisplayName({self._value!r})"


@dataclass(frozen=True)
class StreamDescriptor:
    """One recognized stream, built from a single path segment."""

    platform: Platform
    id: str
    player_url: str
    chat_url: str
    requires_capability: bool = False
    name: DisplayName = field(default_factory=DisplayName, compare=False)

    @property
    def display_name(self) -> str | None:
        return self.name.value

    def set_display_name(self, value: str | None) -> bool:
        stored = self.name.set(value)
        if not stored and value and self.name.value != value:
            logger.debug("Ignoring second display name for {}:{}", self.platform.value, self.id)
        return stored

    @property
    def label(self) -> str:
        """Visible label: the display name when known, else the id."""
        return self.name.value or self.id


@dataclass(frozen=True)
class ResolvedChannel:
    """Result of resolving a YouTube channel reference to its live video."""

    video_id: str
    display_name: str | None = None


@dataclass(frozen=True)
class EnrichmentFragment:
    index: int
    display_name: str
