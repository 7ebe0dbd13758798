"""Music Today - a physics playground of the tracks you listened to today."""

__version__ = "0.1.0"
