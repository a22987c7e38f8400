"""Weekly recurring appointment dates."""

from datetime import date, timedelta

from clinic_agenda.scheduling.calendar_range import week_start
from clinic_agenda.scheduling.dates import to_calendar_date


def recurring_dates(start_date, weekdays: list[int], weeks: int) -> list[date]:
    """
    Dates on the selected weekdays (0=Monday .. 6=Sunday) over ``weeks``
    consecutive weeks, beginning with the week of ``start_date``.

    Days of the first week that fall before ``start_date`` are skipped.
    """
    if weeks < 1:
        raise ValueError('Number of weeks must be at least 1.')
    if not weekdays:
        raise ValueError('Select at least one weekday for recurrence.')
    if any(weekday not in range(7) for weekday in weekdays):
        raise ValueError('Weekdays must be between 0 (Monday) and 6 (Sunday).')

    first_day = to_calendar_date(start_date)
    monday = week_start(first_day)

    dates = set()
    for week in range(weeks):
        for weekday in weekdays:
            occurrence = monday + timedelta(weeks=week, days=weekday)
            if occurrence >= first_day:
                dates.add(occurrence)

    return sorted(dates)
