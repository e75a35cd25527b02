'''
Pure helpers for student names and weekly schedule entries.
'''
import datetime
import re
from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.roster import ScheduleEntry

WEEKDAY_LETTERS = ('Su', 'M', 'T', 'W', 'Th', 'F', 'Sa')

_LOCALIZED_NAME = re.compile(r'\[([^\]]+)\]')
_TRAILING_LOCALIZED_NAME = re.compile(r'\s*\[[^\]]+\]\s*$')


def extract_localized_name(name: Optional[str]) -> Optional[str]:
    """
    "Kim Ji Hye [김지혜]" -> "김지혜"
    "Kim Bo Yeon (Sharon) [김보연]" -> "김보연"
    """
    if not name:
        return None
    match = _LOCALIZED_NAME.search(name)
    return match.group(1) if match else None


def clean_display_name(name: Optional[str]) -> Optional[str]:
    """
    "Kim Ji Hye [김지혜]" -> "Kim Ji Hye"
    """
    if not name:
        return name
    return _TRAILING_LOCALIZED_NAME.sub('', name).strip()


def sunday_based_weekday(day: datetime.date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def weekday_letters(weekdays: Iterable[int]) -> str:
    return ''.join(WEEKDAY_LETTERS[day] for day in sorted(set(weekdays)))


def format_clock(value: datetime.time) -> str:
    return value.strftime('%I:%M %p')


def merge_consecutive_schedules(entries: list['ScheduleEntry']) -> list['ScheduleEntry']:
    """
    Coalesces back-to-back entries on the same weekdays, e.g.
    [7:00-7:30 MWF, 7:30-8:00 MWF] -> [7:00-8:00 MWF].

    Entries are sorted by weekday string then start time and merged in a
    single pass: only adjacent pairs whose end/start touch are joined,
    overlapping ones are left alone.
    """
    if not entries:
        return []

    ordered = sorted(entries, key=lambda entry: (entry.days, entry.start_time))
    merged = []
    current = ordered[0]
    for following in ordered[1:]:
        if current.days == following.days and current.end_time == following.start_time:
            current = current.model_copy(update={'end_time': following.end_time})
        else:
            merged.append(current)
            current = following
    merged.append(current)
    return merged
