"""Core configuration, logging, metrics and geocoding."""
