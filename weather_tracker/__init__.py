# ABOUTME: Weather location tracker core: tracked locations, per-location weather fetch state and preferences.
# ABOUTME: The UI layer drives it through weather_tracker.app.WeatherApp.
