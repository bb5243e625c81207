"""Room picture helpers shared by the guest and hotel pages.

Pictures are stored as ``data:`` URLs, ``http(s)://`` URLs or opaque
blob-storage references. Any non-empty string is treated as displayable.
"""


def is_valid_picture_url(url) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    if url.startswith("data:"):
        return True
    if url.startswith(("http://", "https://")):
        return True
    # blob-storage references resolved by the browser
    return True


def get_valid_pictures(pictures: list[str]) -> list[str]:
    return [p for p in pictures if is_valid_picture_url(p)]


def get_first_valid_picture(pictures: list[str]) -> str | None:
    valid = get_valid_pictures(pictures)
    return valid[0] if valid else None


class FailedImageTracker:
    """Remembers pictures that failed to load, keyed by URL rather than index.

    Bound to one picture list; assigning a different list starts over.
    """

    def __init__(self, pictures: list[str] | None = None):
        self._pictures = list(pictures or [])
        self._failed: set[str] = set()

    @property
    def pictures(self) -> list[str]:
        return list(self._pictures)

    def set_pictures(self, pictures: list[str]) -> None:
        if list(pictures) != self._pictures:
            self._pictures = list(pictures)
            self.reset()

    def mark_failed(self, url: str) -> None:
        self._failed.add(url)

    def has_failed(self, url: str) -> bool:
        return url in self._failed

    def reset(self) -> None:
        self._failed.clear()


def get_displayable_pictures(pictures: list[str], tracker: FailedImageTracker) -> list[str]:
    return [p for p in get_valid_pictures(pictures) if not tracker.has_failed(p)]
