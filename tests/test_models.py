import uuid

from moviecatalog.core.models import Movie, generate_slug, unique_genres


def test_generate_slug_strips_punctuation_and_appends_year():
    assert generate_slug("Nick the Greek", 2023) == "nick-the-greek-2023"
    assert generate_slug("The Matrix: Reloaded!", 2003) == "the-matrix-reloaded-2003"
    assert generate_slug("Spider_Man - Home", 2021) == "spider-man-home-2021"
    assert generate_slug("Amélie", 2001) == "amelie-2001"


def test_create_assigns_fresh_id_and_slug():
    first = Movie.create("Heat", 1995, ["Crime"])
    second = Movie.create("Heat", 1995, ["Crime"])
    assert first.id != second.id
    assert first.slug == second.slug == "heat-1995"


def test_with_id_keeps_id():
    movie_id = uuid.uuid4()
    movie = Movie.with_id(movie_id, "Heat", 1995, ("Crime", "Drama"))
    assert movie.id == movie_id
    assert movie.genres == ["Crime", "Drama"]


def test_same_as_compares_genres_as_sets():
    movie = Movie.create("Heat", 1995, ["Crime", "Drama"])
    reordered = Movie(movie.id, movie.slug, movie.title, movie.year_of_release, ["Drama", "Crime"])
    assert movie.same_as(reordered)
    assert movie != reordered


def test_unique_genres_keeps_first_occurrence():
    assert unique_genres(["Drama", "Action", "Drama", "drama"]) == ["Drama", "Action", "drama"]


def test_with_id_drops_repeated_genres():
    movie = Movie.with_id(uuid.uuid4(), "Heat", 1995, ["Drama", "Crime", "Drama"])
    assert movie.genres == ["Drama", "Crime"]
