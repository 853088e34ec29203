"""
Track routing: score a track's genres against playlist genre profiles.

Profiles are consulted in the mapping's iteration order, which callers set to
the configured target playlist order. Ties go to the earliest playlist.
"""

from typing import Iterable, List, Mapping, Optional, Tuple

from likes_router.models.profile import GenreProfile

def score(track_genres: Iterable[str], profile: GenreProfile) -> int:
    """Sum of the profile weights of each of the track's genres."""
    return sum(profile.get(genre, 0) for genre in set(track_genres))

def pick_best_playlist(
    track_genres: Iterable[str],
    profiles: Mapping[str, GenreProfile]
) -> Optional[str]:
    """
    Return the playlist with the strictly highest score.

    With empty track_genres every score is 0 and the first playlist wins.
    Returns None only when no profiles are given.
    """
    genres = set(track_genres)
    best_id = None
    best_score = -1

    for playlist_id, profile in profiles.items():
        current = score(genres, profile)
        if current > best_score:
            best_id = playlist_id
            best_score = current

    return best_id

def rank_playlists(
    track_genres: Iterable[str],
    profiles: Mapping[str, GenreProfile]
) -> List[Tuple[str, int]]:
    """All (playlist_id, score) pairs, best first; equal scores keep profile order."""
    genres = set(track_genres)
    scores = [(playlist_id, score(genres, profile)) for playlist_id, profile in profiles.items()]
    return sorted(scores, key=lambda item: item[1], reverse=True)
