# ABOUTME: Process-wide store for the active language and unit system.
# ABOUTME: Broadcasts (old, new) Preferences to subscribers whenever a value actually changes.

import logging
from collections.abc import Callable

from weather_tracker.models import Preferences, UnitSystem

logger = logging.getLogger(__name__)

PreferencesListener = Callable[[Preferences, Preferences], None]


class PreferencesStore:
    def __init__(self, unit_system: UnitSystem | str = UnitSystem.IMPERIAL, language: str = "en"):
        self._current = Preferences(unit_system=UnitSystem(unit_system), language=language)
        self._listeners: list[PreferencesListener] = []

    @property
    def current(self) -> Preferences:
        return self._current

    @property
    def unit_system(self) -> UnitSystem:
        return self._current.unit_system

    @property
    def language(self) -> str:
        return self._current.language

    def subscribe(self, listener: PreferencesListener) -> Callable[[], None]:
        """Register a change listener; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_unit_system(self, unit_system: UnitSystem | str) -> None:
        try:
            value = UnitSystem(unit_system)
        except ValueError:
            raise ValueError(f"Unknown unit system: {unit_system!r}") from None
        self._update(self._current.model_copy(update={"unit_system": value}))

    def set_language(self, language: str) -> None:
        if not language or not language.strip():
            raise ValueError("Language code must not be empty")
        self._update(self._current.model_copy(update={"language": language.strip()}))

    def _update(self, new: Preferences) -> None:
        old = self._current
        if new == old:
            return
        self._current = new
        logger.info("Preferences changed: %s/%s -> %s/%s", old.unit_system, old.language, new.unit_system, new.language)
        for listener in list(self._listeners):
            listener(old, new)
