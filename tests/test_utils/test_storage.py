"""
Unit tests for review storage.
"""

import pytest
import json
import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import Mock, patch
from reviewsync.models.review import Review, Source
from reviewsync.utils.storage import ReviewStore, format_filename, format_rating, slugify_author
from reviewsync.utils.thumbnails import ThumbnailPipeline

DATE = datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def thumbnails():
    pipeline = Mock(spec=ThumbnailPipeline)
    pipeline.acquire.return_value = True
    return pipeline


@pytest.fixture
def store(thumbnails):
    with tempfile.TemporaryDirectory() as tmpdir:
        yield ReviewStore(tmpdir, thumbnails)


def make_review(**overrides):
    fields = dict(
        content="Fantastic from start to finish",
        date=DATE,
        rating=5,
        author="John Smith",
        author_url="https://www.google.com/maps/contrib/123",
        photo_url="https://img.example.com/a.png",
        user_id="123",
    )
    fields.update(overrides)
    return Review(**fields)


def test_slugify_author():
    assert slugify_author("John Smith") == "john-smith"
    assert slugify_author("José O'Brien") == "jos-obrien"
    assert slugify_author(None) == "anonymous"
    assert slugify_author("") == "anonymous"
    assert len(slugify_author("A" * 100)) == 30


def test_format_filename():
    assert format_filename("John Smith", DATE) == "john-smith-2024-06-15.json"


def test_format_rating():
    assert format_rating(4, Source.GOOGLE) == "4/5 stars"
    assert format_rating(5, Source.FACEBOOK) == "recommended"
    assert format_rating(1, Source.FACEBOOK) == "not recommended"


def test_save_writes_stored_review(store, thumbnails):
    """Test the on-disk shape of a new review."""
    business_dir = store.ensure_business_dir("acme")

    assert store.save(make_review(), business_dir, Source.GOOGLE)

    with open(os.path.join(business_dir, "john-smith-2024-06-15.json"), encoding="utf-8") as f:
        data = json.load(f)

    assert data == {
        "author": "John Smith",
        "authorUrl": "https://www.google.com/maps/contrib/123",
        "rating": 5,
        "content": "Fantastic from start to finish",
        "date": "2024-06-15T10:30:00.000Z",
        "userId": "123",
        "photoUrl": "https://img.example.com/a.png",
        "thumbnail": "/images/reviewers/123.webp",
        "source": "google",
    }
    thumbnails.acquire.assert_called_once_with("https://img.example.com/a.png", "123")


def test_save_twice(store, thumbnails):
    """Test that saving the same review twice writes once and fetches once."""
    business_dir = store.ensure_business_dir("acme")

    results = (store.save(make_review(), business_dir, Source.GOOGLE),
               store.save(make_review(), business_dir, Source.GOOGLE))

    assert results == (True, False)
    assert os.listdir(business_dir) == ["john-smith-2024-06-15.json"]
    assert thumbnails.acquire.call_count == 1


def test_save_skips_existing_file(store, thumbnails):
    """Test that an existing file is never overwritten."""
    business_dir = store.ensure_business_dir("acme")
    filepath = os.path.join(business_dir, "john-smith-2024-06-15.json")
    with open(filepath, "w", encoding="utf-8") as f:
        f.write('{"keep": true}')

    assert not store.save(make_review(content="Different text entirely"), business_dir, Source.GOOGLE)

    with open(filepath, encoding="utf-8") as f:
        assert json.load(f) == {"keep": True}
    thumbnails.acquire.assert_not_called()


def test_save_without_thumbnail(store, thumbnails):
    thumbnails.acquire.return_value = False
    business_dir = store.ensure_business_dir("acme")

    assert store.save(make_review(), business_dir, Source.GOOGLE)

    with open(os.path.join(business_dir, "john-smith-2024-06-15.json"), encoding="utf-8") as f:
        assert json.load(f)["thumbnail"] is None


def test_save_without_user_id(store, thumbnails):
    business_dir = store.ensure_business_dir("acme")

    assert store.save(make_review(user_id=None), business_dir, Source.GOOGLE)

    thumbnails.acquire.assert_not_called()


def test_platform_extras(store):
    business_dir = store.ensure_business_dir("acme")
    store.save(make_review(author="Sam", is_recommended=True, user_id="fb-1"), business_dir, Source.FACEBOOK)
    store.save(make_review(author="Alex", review_title="Superb", user_id="tp-1"), business_dir, Source.TRUSTPILOT)

    stored = dict((os.path.basename(p), d) for p, d in store.iter_stored(business_dir))

    assert stored["sam-2024-06-15.json"]["isRecommended"] is True
    assert stored["sam-2024-06-15.json"]["source"] == "facebook"
    assert "reviewTitle" not in stored["sam-2024-06-15.json"]
    assert stored["alex-2024-06-15.json"]["reviewTitle"] == "Superb"


def test_save_all_counts_new(store):
    business_dir = store.ensure_business_dir("acme")
    reviews = [make_review(author="A"), make_review(author="B"), make_review(author="A")]

    assert store.save_all(reviews, business_dir, Source.GOOGLE) == 2


def test_iter_stored_skips_unreadable(store):
    business_dir = store.ensure_business_dir("acme")
    store.save(make_review(), business_dir, Source.GOOGLE)
    with open(os.path.join(business_dir, "broken.json"), "w", encoding="utf-8") as f:
        f.write("{oops")

    stored = list(store.iter_stored(business_dir))

    assert len(stored) == 1
    assert stored[0][1]["author"] == "John Smith"


def test_write_replaces_atomically(store):
    business_dir = store.ensure_business_dir("acme")
    filepath = os.path.join(business_dir, "john-smith-2024-06-15.json")

    store.write(filepath, {"author": "John Smith"})
    store.write(filepath, {"author": "John Smith", "thumbnail": "/images/reviewers/123.webp"})

    with open(filepath, encoding="utf-8") as f:
        assert json.load(f)["thumbnail"] == "/images/reviewers/123.webp"
    assert os.listdir(business_dir) == ["john-smith-2024-06-15.json"]


def test_failed_write_leaves_no_partial_file(store):
    """Test that an interrupted write leaves neither a truncated review nor a temp file."""
    business_dir = store.ensure_business_dir("acme")
    filepath = os.path.join(business_dir, "john-smith-2024-06-15.json")

    with patch("reviewsync.utils.storage.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            store.write(filepath, {"author": "John Smith"})

    assert os.listdir(business_dir) == []
    assert list(store.iter_stored(business_dir)) == []


def test_failed_rewrite_keeps_previous_content(store):
    business_dir = store.ensure_business_dir("acme")
    filepath = os.path.join(business_dir, "john-smith-2024-06-15.json")
    store.write(filepath, {"author": "John Smith"})

    with patch("reviewsync.utils.storage.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            store.write(filepath, {"author": "John Smith", "thumbnail": "/images/reviewers/123.webp"})

    with open(filepath, encoding="utf-8") as f:
        assert json.load(f) == {"author": "John Smith"}
    assert os.listdir(business_dir) == ["john-smith-2024-06-15.json"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
