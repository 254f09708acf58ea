"""Formatting helpers shared by the generation tasks."""

TWITTER_MAX_LENGTH = 280
TRUNCATION_MARKER = "..."


def format_timestamp(seconds: float, pad_hours: bool = True) -> str:
    """
    Formats an offset in seconds as a clock string.

    Args:
        seconds: Offset from the start of the audio.
        pad_hours: When True always render HH:MM:SS. When False render
            MM:SS, or H:MM:SS once the offset reaches an hour (YouTube style).

    Returns:
        The formatted timestamp.
    """
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if pad_hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def truncate_post(
    text: str, limit: int = TWITTER_MAX_LENGTH, marker: str = TRUNCATION_MARKER
) -> str:
    """Cuts text to at most `limit` characters, ending with `marker` when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - len(marker)] + marker
