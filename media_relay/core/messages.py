"""Rendering of the text messages sent to requesting contacts."""
from typing import Dict, Iterable, List, Optional, Tuple

from media_relay.core.models import MediaType


def _emoji(media_type: MediaType) -> str:
    return "🎬" if media_type == MediaType.MOVIE else "📺"


def _display(title: str, year: Optional[int]) -> str:
    return f"{title} ({year})" if year else title


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    if count == 1:
        return singular
    return plural or f"{singular}s"


def format_season_list(seasons: Iterable[int]) -> str:
    """"Season 1", "Seasons 1 and 2", "Seasons 1, 2 and 3"."""
    ordered = sorted(set(seasons))
    if not ordered:
        return ""
    if len(ordered) == 1:
        return f"Season {ordered[0]}"
    if len(ordered) == 2:
        return f"Seasons {ordered[0]} and {ordered[1]}"
    head = ", ".join(str(s) for s in ordered[:-1])
    return f"Seasons {head} and {ordered[-1]}"


def request_rejected_automatically(media_type: MediaType, title: str, year: Optional[int]) -> str:
    return (
        "❌ Your request was automatically declined.\n\n"
        f"{_emoji(media_type)} *{_display(title, year)}*\n\n"
        "Reason: Automatic approval is currently disabled."
    )


def request_rejected_by_admin(
    media_type: MediaType, title: str, year: Optional[int], reason: Optional[str] = None
) -> str:
    reason_text = f"\n\nReason: {reason}" if reason else ""
    return (
        "❌ Your request was declined by administrator.\n\n"
        f"{_emoji(media_type)} *{_display(title, year)}*{reason_text}"
    )


def request_pending(media_type: MediaType, title: str, year: Optional[int]) -> str:
    return (
        "⏳ Your request is pending approval.\n\n"
        f"{_emoji(media_type)} *{_display(title, year)}*\n\n"
        "You will be notified once an administrator reviews your request."
    )


def request_submitted(
    media_type: MediaType, title: str, year: Optional[int], by_admin: bool = False
) -> str:
    headline = "✅ Your request has been approved!" if by_admin else "✅ Request submitted successfully!"
    return (
        f"{headline}\n\n"
        f"{_emoji(media_type)} *{_display(title, year)}* has been added to the queue.\n\n"
        "You will be notified when it's available."
    )


def request_failed(
    media_type: MediaType, title: str, year: Optional[int], error_message: Optional[str]
) -> str:
    return (
        "❌ Failed to submit your request.\n\n"
        f"{_emoji(media_type)} *{_display(title, year)}*\n\n"
        f"{error_message or 'An error occurred. Please try again later.'}"
    )


def media_available(
    media_type: MediaType,
    title: str,
    year: Optional[int],
    is_partial: bool = False,
    available_seasons: Optional[List[int]] = None,
) -> str:
    display = _display(title, year)
    if is_partial:
        if available_seasons:
            details = "\n\n✅ *Available:* " + ", ".join(
                f"Season {s}" for s in sorted(available_seasons)
            )
        else:
            details = "\n\n⚠️ Some content is now available."
        return (
            "🎉 *Good news!*\n\n"
            f"{_emoji(media_type)} *{display}* is now partially available in your library!"
            f"{details}\n\n"
            "You can start watching the available content now. More may be added soon!"
        )
    return (
        "🎉 *Good news!*\n\n"
        f"{_emoji(media_type)} *{display}* is now available in your library!\n\n"
        "You can start watching it now."
    )


def seasons_available(title: str, year: Optional[int], seasons: List[int]) -> str:
    count = len(seasons)
    return (
        "🎉 *Great news!*\n\n"
        f"📺 *{_display(title, year)}*\n\n"
        f"✅ {format_season_list(seasons)} {pluralize(count, 'is', 'are')} "
        "now available in your library!\n\n"
        f"You can start watching {pluralize(count, 'it', 'them')} now."
    )


def seasons_released(title: str, year: Optional[int], seasons: List[int]) -> str:
    count = len(seasons)
    return (
        "🆕 *New Season Alert!*\n\n"
        f"📺 *{_display(title, year)}*\n\n"
        f"🎬 {format_season_list(seasons)} {pluralize(count, 'has', 'have')} been released "
        f"and {pluralize(count, 'is', 'are')} now available!\n\n"
        f"This {pluralize(count, 'was', 'were')}n't part of your original request, "
        "but we thought you'd like to know!"
    )


def seasons_announced(title: str, year: Optional[int], seasons: List[int]) -> str:
    count = len(seasons)
    return (
        "🆕 *New Season Announcement!*\n\n"
        f"📺 *{_display(title, year)}*\n\n"
        f"🎬 {format_season_list(seasons)} {pluralize(count, 'has', 'have')} been announced!\n\n"
        f"{pluralize(count, 'It', 'They')} may not be available yet, but we'll let you know "
        f"when {pluralize(count, 'it is', 'they are')}!"
    )


def episodes_available(
    title: str, year: Optional[int], episodes: List[Tuple[int, int]]
) -> str:
    """`episodes` doit être trié par (saison, épisode)."""
    display = _display(title, year)
    count = len(episodes)
    if count == 1:
        season, episode = episodes[0]
        return (
            "📺 *New Episode Available!*\n\n"
            f"*{display}*\n\n"
            f"✨ Season {season} Episode {episode} is now ready to watch!\n\n"
            "Enjoy! 🍿"
        )

    if count <= 5:
        episode_list = ", ".join(f"S{season}E{episode}" for season, episode in episodes)
        return (
            f"📺 *{count} New Episodes Available!*\n\n"
            f"*{display}*\n\n"
            f"✨ Episodes {episode_list} are now ready to watch!\n\n"
            "Happy binge-watching! 🍿"
        )

    by_season: Dict[int, List[int]] = {}
    for season, episode in episodes:
        by_season.setdefault(season, []).append(episode)
    lines = []
    for season in sorted(by_season):
        eps = by_season[season]
        if len(eps) == 1:
            lines.append(f"Season {season} Episode {eps[0]}")
        else:
            lines.append(f"Season {season}: {len(eps)} {pluralize(len(eps), 'episode')}")
    return (
        f"📺 *{count} New Episodes Available!*\n\n"
        f"*{display}*\n\n"
        + "\n".join(lines)
        + "\n\nHappy binge-watching! 🍿"
    )
