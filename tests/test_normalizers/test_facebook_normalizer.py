"""
Unit tests for the Facebook normalizer.
"""

import pytest
from reviewsync.normalizers import FacebookNormalizer
from reviewsync.normalizers.facebook import extract_facebook_user_id


@pytest.fixture
def normalizer():
    return FacebookNormalizer()


def test_recommended_review(normalizer):
    """Test mapping of a recommendation."""
    raw = {
        "text": "Lovely people and quick work",
        "date": "2024-03-01T08:00:00.000Z",
        "isRecommended": True,
        "url": "https://www.facebook.com/review/1",
        "user": {
            "id": "100012345678",
            "name": "Sam Lee",
            "profilePic": "https://scontent.example.com/pic.jpg",
        },
    }

    review = normalizer.normalize(raw)

    assert review.rating == 5
    assert review.is_recommended is True
    assert review.author == "Sam Lee"
    assert review.author_url == "https://www.facebook.com/review/1"
    assert review.photo_url == "https://scontent.example.com/pic.jpg"
    assert review.user_id == "fb-100012345678"


def test_not_recommended_review(normalizer):
    review = normalizer.normalize({"text": "Not for me at all", "isRecommended": False})
    assert review.rating == 1
    assert review.is_recommended is False


def test_missing_recommendation(normalizer):
    """Test that a missing flag is treated as not recommended."""
    review = normalizer.normalize({"text": "No flag on this one"})
    assert review.rating == 1
    assert review.is_recommended is None


def test_profile_url_fallback(normalizer):
    review = normalizer.normalize({"user": {"profileUrl": "https://www.facebook.com/sam"}})
    assert review.author_url == "https://www.facebook.com/sam"


def test_missing_user(normalizer):
    review = normalizer.normalize({"text": "Anonymous feedback"})
    assert review.author == "Anonymous"
    assert review.user_id is None
    assert review.photo_url == ""


def test_extract_facebook_user_id():
    """Test stable id construction for numeric and opaque ids."""
    assert extract_facebook_user_id({"id": "12345"}) == "fb-12345"
    assert extract_facebook_user_id({"id": 12345}) == "fb-12345"

    opaque = "pfbid0abcdefghijklmnopqrstuvwxyz"
    assert extract_facebook_user_id({"id": opaque}) == f"fb-{opaque[:20]}"

    assert extract_facebook_user_id({}) is None
    assert extract_facebook_user_id({"id": ""}) is None
    assert extract_facebook_user_id(None) is None
    assert extract_facebook_user_id("12345") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
