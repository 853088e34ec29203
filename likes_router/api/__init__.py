"""API clients for the music catalog."""

from .base_client import BaseAPIClient, APIError, RateLimitError, AuthenticationError
from .spotify_client import SpotifyClient

__all__ = [
    'BaseAPIClient',
    'APIError',
    'RateLimitError',
    'AuthenticationError',
    'SpotifyClient'
]
