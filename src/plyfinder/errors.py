"""Custom errors raised inside the search engine.

None of these escape ``Retriever.search``: the loader and the scoring
pipeline catch them, log, and degrade to an empty result.
"""


class PlyfinderError(Exception):
    """Base error for the package."""
    pass


# ---------------- Catalog ----------------

class DataUnavailableError(PlyfinderError):
    """A catalog source could not be read, or parsed to zero rows."""
    pass


class MalformedFieldError(PlyfinderError):
    """A catalog cell could not be parsed (e.g. a broken meta-keyword list)."""
    pass
