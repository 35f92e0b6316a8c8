class ScoutError(Exception):
    """Base class for everything the scraper raises on purpose."""


class ParseFailure(ScoutError):
    """The captured page could not be turned into a document at all."""


class UnknownWebsite(ScoutError, ValueError):
    """The website identifier does not name a supported site."""

    def __init__(self, website):
        self.website = website
        super().__init__(f"Unsupported website: {website!r}")


class FetchError(ScoutError):
    """The page fetcher gave up on a site after its retries."""
