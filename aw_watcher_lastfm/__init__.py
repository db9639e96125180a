"""Report the track playing on Last.fm to ActivityWatch."""

__version__ = "0.2.0"
