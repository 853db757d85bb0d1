from .movie import Movie, generate_slug, unique_genres

__all__ = ["Movie", "generate_slug", "unique_genres"]
