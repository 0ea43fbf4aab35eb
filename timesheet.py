from collections.abc import MutableSequence, Sequence
from datetime import date, datetime, time, timedelta

import structlog

from stamps import (InvalidArgumentError, Notification, Stamp, StampsSource,
                    StampType)

logger = structlog.get_logger(__name__)

# Shifts ending after midnight but not later than this still belong to the previous day.
NEXT_DAY_CUTOFF: time = time(4, 0)
DAY_BEGIN: time = time(0, 0, 0)
DAY_END: time = time(23, 59, 59)

def as_day(day: date | datetime) -> date:
    """Drops the time part of a datetime; dates pass through."""
    if isinstance(day, datetime):
        return day.date()
    return day

def verify_stamps_sequence(stamps: MutableSequence[Stamp], employee_id: int, day: date,
                           notifications: MutableSequence[Notification]) -> list[Stamp]:
    """
    Repairs runs of same typed stamps of one employee-day.

    Every adjacent pair of the given stamps is looked at once:
    - Same type and same time: the later stamp is a duplicate of the same event
      and is dropped. Any number of equal duplicates collapses into the first one.
    - Same type, different time: a stamp of the same type is put at the middle
      between them (rounded down), so the run is split by a marker. Stamps
      one clock tick apart leave no room for it and are kept as they are.

    Stamps added here are never looked at again, which bounds the work by the
    length of the input.

    Args:
        stamps: Stamps of the employee for the day, ordered by time.
        employee_id: Employee the added stamps belong to.
        day: Reporting day.
        notifications: Audit trail. This is modified in place.

    Returns:
        A new list with the corrected sequence. `stamps` itself is left as is.

    Raises:
        InvalidArgumentError: If `stamps` or `notifications` is not a mutable sequence.
    """
    if not isinstance(stamps, MutableSequence):
        raise InvalidArgumentError(f'Collection of stamps must be a mutable sequence, got {type(stamps).__name__}.')
    if not isinstance(notifications, MutableSequence):
        raise InvalidArgumentError(
            f'Collection of notifications must be a mutable sequence, got {type(notifications).__name__}.')

    corrected: list[Stamp] = []
    removed: int = 0
    inserted: int = 0

    # Last stamp of the input that was kept, so added middles are never paired again
    previous: Stamp | None = None
    for stamp in stamps:
        if previous is not None and previous.type == stamp.type:
            if previous.time == stamp.time:
                notifications.append(Notification.from_config(
                    'duplicate_removed', stamp_type=stamp.type.value.capitalize(), time=stamp.time))
                removed += 1
                continue

            middle_time: datetime = previous.time + (stamp.time - previous.time) // 2
            # A gap below the clock resolution has no room for a marker
            if middle_time == previous.time:
                corrected.append(stamp)
                previous = stamp
                continue

            middle: Stamp = Stamp(employee_id, stamp.type, middle_time)
            corrected.append(middle)
            notifications.append(Notification.from_config(
                'same_type_split', stamp_type=stamp.type.value.capitalize(),
                first=previous.time, second=stamp.time, time=middle.time))
            inserted += 1

        corrected.append(stamp)
        previous = stamp

    if removed or inserted:
        logger.debug('stamps_sequence_corrected', employee_id=employee_id, day=str(day),
                     removed=removed, inserted=inserted)
    return corrected

def verify_first_stamp(stamps: list[Stamp], employee_id: int, day: date,
                       notifications: MutableSequence[Notification]) -> list[Stamp]:
    """
    Puts an In-stamp at the beginning of the day if the day does not start with one.

    Args:
        stamps: Non-empty sequence of stamps of the day.
        employee_id: Target employee.
        day: Reporting day.
        notifications: Audit trail. This is modified in place.

    Returns:
        The sequence starting with an In-stamp.
    """
    if stamps[0].type == StampType.IN:
        return stamps

    notifications.append(Notification.from_config('first_in_missing'))
    notifications.append(Notification.from_config('day_begin_used'))

    first_in: Stamp = Stamp(employee_id, StampType.IN, datetime.combine(day, DAY_BEGIN))
    logger.debug('first_in_added', employee_id=employee_id, day=str(day), time=str(first_in.time))
    return [first_in] + stamps

def next_day_earliest_finding_time(day: date, cutoff: time = NEXT_DAY_CUTOFF) -> datetime:
    """Latest time of the next day an Out-stamp may have to still close `day`."""
    return datetime.combine(day + timedelta(days=1), cutoff)

def verify_last_stamp(stamps: list[Stamp], employee_id: int, day: date, source: StampsSource,
                      notifications: MutableSequence[Notification],
                      next_day_cutoff: time = NEXT_DAY_CUTOFF) -> list[Stamp]:
    """
    Closes the day with an Out-stamp if it does not end with one.

    A shift crossing midnight ends with the first stamp of the next day when
    that stamp is an Out-stamp recorded no later than `next_day_cutoff`. Then
    that very stamp is used. Otherwise the end of the target day is used.

    Args:
        stamps: Non-empty sequence of stamps of the day.
        employee_id: Target employee.
        day: Reporting day.
        source: Source the stamps of the next day are read from. Only queried
                when the day does not end with an Out-stamp.
        notifications: Audit trail. This is modified in place.
        next_day_cutoff: Time of the next day after which stamps are unrelated.

    Returns:
        The sequence ending with an Out-stamp.
    """
    if stamps[-1].type == StampType.OUT:
        return stamps

    notifications.append(Notification.from_config('last_out_missing'))

    next_day: date = day + timedelta(days=1)
    next_day_stamps: list[Stamp] = source.get_by_employee_id_for_day(employee_id, next_day)
    finding_time: datetime = next_day_earliest_finding_time(day, next_day_cutoff)

    # First stamp of next day is Out-stamp and satisfies restriction time
    if next_day_stamps and next_day_stamps[0].type == StampType.OUT and next_day_stamps[0].time <= finding_time:
        notifications.append(Notification.from_config('next_day_out_used'))
        last_out: Stamp = next_day_stamps[0]
    else:
        notifications.append(Notification.from_config('day_end_used'))
        last_out = Stamp(employee_id, StampType.OUT, datetime.combine(day, DAY_END))

    logger.debug('last_out_added', employee_id=employee_id, day=str(day), time=str(last_out.time))
    return stamps + [last_out]

def fix_boundaries(stamps: Sequence[Stamp], employee_id: int, day: date, source: StampsSource,
                   notifications: MutableSequence[Notification],
                   next_day_cutoff: time = NEXT_DAY_CUTOFF) -> list[Stamp]:
    """
    Makes the stamps of a day start with an In-stamp and end with an Out-stamp.

    Args:
        stamps: Stamps of the day, ordered by time. May be empty.
        employee_id: Target employee.
        day: Reporting day.
        source: Source of stamps, read for the next day when the last Out-stamp is missing.
        notifications: Audit trail. This is modified in place.
        next_day_cutoff: See `verify_last_stamp`.

    Returns:
        A new list with the bounded sequence; empty when `stamps` is empty.
    """
    bounded: list[Stamp] = list(stamps)
    if not bounded:
        return bounded

    bounded = verify_first_stamp(bounded, employee_id, day, notifications)
    bounded = verify_last_stamp(bounded, employee_id, day, source, notifications, next_day_cutoff)
    return bounded

def pair_stamps(stamps: Sequence[Stamp]) -> tuple[list[tuple[Stamp, Stamp]], list[Stamp]]:
    """
    Splits a sequence into consecutive (In, Out) pairs.

    An In-stamp opens a pair when none is open and the next Out-stamp closes it.
    In-stamps seen while a pair is open and Out-stamps with no open pair are
    left over, as is a final In-stamp that is never closed.

    Args:
        stamps: Stamps ordered by time.

    Returns:
        A tuple containing:
        - list of (In, Out) pairs, in order.
        - list of stamps that did not get into any pair.
    """
    pairs: list[tuple[Stamp, Stamp]] = []
    unpaired: list[Stamp] = []

    opened: Stamp | None = None
    for stamp in stamps:
        if stamp.type == StampType.IN:
            if opened is None:
                opened = stamp
            else:
                unpaired.append(stamp)
        elif opened is not None:
            pairs.append((opened, stamp))
            opened = None
        else:
            unpaired.append(stamp)

    if opened is not None:
        unpaired.append(opened)
    return pairs, unpaired

def total_worked(stamps: Sequence[Stamp]) -> timedelta:
    """Sums the time between the In- and Out-stamp of every pair; zero for no stamps."""
    pairs, _ = pair_stamps(stamps)
    total: timedelta = sum((stamp_out.time - stamp_in.time for stamp_in, stamp_out in pairs), timedelta())
    return max(total, timedelta())
