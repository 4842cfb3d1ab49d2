# ABOUTME: Translation lookup with a locale -> base language -> English fallback chain.
# ABOUTME: Also formats unit-dependent labels (wind speed, visibility) for the presentation layer.

import logging

from weather_tracker.models import ErrorKind, UnitSystem

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "now": "Now",
        "hourlyForecast": "Hourly forecast",
        "dailyForecast": "7-day forecast",
        "sunrise": "Sunrise",
        "sunset": "Sunset",
        "humidity": "Humidity",
        "feelsLike": "Feels like",
        "wind": "Wind",
        "visibility": "Visibility",
        "uvIndex": "UV index",
        "cityExists": "{city} is already in your list.",
        "cannotDelete": "You must have at least one city.",
        "errorCityNotFound": "Could not find {city}.",
        "errorApiKey": "The weather service rejected the request.",
        "errorNetwork": "Network error. Check your connection.",
        "errorDefault": "Something went wrong.",
        "add": "Add",
        "addCity": "Add city",
        "manageCities": "Manage cities",
        "myCities": "My cities",
        "searchPlaceholder": "Search for a city",
        "settings": "Settings",
        "language": "Language",
        "temperature": "Temperature",
        "fahrenheit": "Fahrenheit",
        "celsius": "Celsius",
    },
    "es": {
        "now": "Ahora",
        "hourlyForecast": "Pronóstico por hora",
        "dailyForecast": "Pronóstico de 7 días",
        "sunrise": "Amanecer",
        "sunset": "Atardecer",
        "humidity": "Humedad",
        "feelsLike": "Sensación",
        "wind": "Viento",
        "visibility": "Visibilidad",
        "uvIndex": "Índice UV",
        "cityExists": "{city} ya está en tu lista.",
        "cannotDelete": "Debes tener al menos una ciudad.",
        "errorCityNotFound": "No se encontró {city}.",
        "errorApiKey": "El servicio del clima rechazó la solicitud.",
        "errorNetwork": "Error de red. Revisa tu conexión.",
        "errorDefault": "Algo salió mal.",
        "add": "Añadir",
        "addCity": "Añadir ciudad",
        "manageCities": "Administrar ciudades",
        "myCities": "Mis ciudades",
        "searchPlaceholder": "Buscar una ciudad",
        "settings": "Ajustes",
        "language": "Idioma",
        "temperature": "Temperatura",
        "fahrenheit": "Fahrenheit",
        "celsius": "Celsius",
    },
}

ERROR_KEYS: dict[ErrorKind, str] = {
    ErrorKind.CITY_NOT_FOUND: "errorCityNotFound",
    ErrorKind.UPSTREAM_ERROR: "errorApiKey",
    ErrorKind.NETWORK_ERROR: "errorNetwork",
}


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class Translator:
    def __init__(self, language: str = DEFAULT_LANGUAGE, tables: dict[str, dict[str, str]] | None = None):
        self.language = language
        self._tables = TRANSLATIONS if tables is None else tables

    def chain(self, language: str | None = None) -> list[str]:
        """Languages tried in order: exact tag, base language, default."""
        tag = (language or self.language).replace("_", "-")
        chain = [tag, tag.split("-")[0].lower(), DEFAULT_LANGUAGE]
        return list(dict.fromkeys(chain))

    def display_language(self, language: str | None = None) -> str:
        """The first language in the chain that has a string table."""
        for candidate in self.chain(language):
            if candidate in self._tables:
                return candidate
        return DEFAULT_LANGUAGE

    def t(self, key: str, **params) -> str:
        """Translate `key`; never raises, returns the key itself when no table has it."""
        for candidate in self.chain():
            template = self._tables.get(candidate, {}).get(key)
            if template is not None:
                break
        else:
            logger.debug("Missing translation for %r", key)
            return key
        try:
            return template.format_map(_KeepMissing(params))
        except (ValueError, IndexError):
            return template

    def error_message(self, kind: ErrorKind, city: str) -> str:
        return self.t(ERROR_KEYS.get(kind, "errorDefault"), city=city)


def wind_unit(unit_system: UnitSystem) -> str:
    return "mph" if unit_system == UnitSystem.IMPERIAL else "m/s"


def format_visibility(meters: float, unit_system: UnitSystem) -> str:
    """Visibility arrives in meters regardless of the unit system."""
    if unit_system == UnitSystem.IMPERIAL:
        return f"{meters / 1609:.1f} mi"
    return f"{meters / 1000:.1f} km"
