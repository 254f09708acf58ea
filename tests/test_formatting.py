import pytest

from podcast_pipeline.domain.formatting import format_timestamp, truncate_post


@pytest.mark.parametrize(
    "seconds, padded, youtube",
    [
        (0, "00:00:00", "00:00"),
        (65, "00:01:05", "01:05"),
        (3599, "00:59:59", "59:59"),
        (3725, "01:02:05", "1:02:05"),
        (-5, "00:00:00", "00:00"),
    ],
)
def test_format_timestamp(seconds, padded, youtube):
    assert format_timestamp(seconds) == padded
    assert format_timestamp(seconds, pad_hours=False) == youtube


def test_truncate_post_leaves_short_text_alone():
    assert truncate_post("hello", limit=10) == "hello"
    assert truncate_post("x" * 10, limit=10) == "x" * 10


def test_truncate_post_cuts_to_limit_with_marker():
    result = truncate_post("abcdefghijkl", limit=10)

    assert result == "abcdefg..."
    assert len(result) == 10
