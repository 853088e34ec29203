"""Route newly liked Spotify tracks into playlists by genre profile."""

__version__ = "1.0.0"
