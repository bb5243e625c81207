from hotelbook.services.pictures import (
    FailedImageTracker,
    get_displayable_pictures,
    get_first_valid_picture,
    get_valid_pictures,
    is_valid_picture_url,
)


def test_picture_validity():
    assert is_valid_picture_url("") is False
    assert is_valid_picture_url("   ") is False
    assert is_valid_picture_url(None) is False
    assert is_valid_picture_url("data:foo") is True
    assert is_valid_picture_url("https://x") is True
    assert is_valid_picture_url("anything-nonempty") is True


def test_valid_and_first_picture():
    pictures = ["", "blob-1", "https://cdn/a.jpg"]
    assert get_valid_pictures(pictures) == ["blob-1", "https://cdn/a.jpg"]
    assert get_first_valid_picture(pictures) == "blob-1"
    assert get_first_valid_picture(["", ""]) is None


def test_failed_images_tracked_by_url_not_position():
    pictures = ["a", "b", "c"]
    tracker = FailedImageTracker(pictures)
    tracker.mark_failed("b")
    assert get_displayable_pictures(pictures, tracker) == ["a", "c"]
    # order of the survivors is untouched
    tracker.mark_failed("a")
    assert get_displayable_pictures(pictures, tracker) == ["c"]


def test_tracker_resets_when_picture_list_changes():
    tracker = FailedImageTracker(["a", "b"])
    tracker.mark_failed("a")
    tracker.set_pictures(["a", "b"])
    assert tracker.has_failed("a")
    tracker.set_pictures(["a", "b", "c"])
    assert not tracker.has_failed("a")
    assert tracker.pictures == ["a", "b", "c"]
