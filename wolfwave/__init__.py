"""WolfWave: relays now-playing music info to a Twitch chat bot."""

__version__ = "1.0.0"
