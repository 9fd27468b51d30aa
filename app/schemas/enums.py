from enum import Enum, IntEnum

class MediaType(str, Enum):
    movie = "movie"
    series = "series"
    game = "game"

class Rating(IntEnum):
    unrated = 0
    disliked = 1
    liked = 2
    loved = 3

class Category(str, Enum):
    loved = "loved"
    liked = "liked"
    disliked = "disliked"
    watchlist = "watchlist"
    unrated = "unrated"

class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"

MEDIA_TYPES = [t.value for t in MediaType]
MIN_RATING = int(Rating.unrated)
MAX_RATING = int(Rating.loved)
