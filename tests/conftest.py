"""Shared fixtures and fakes for the report tests."""

from collections import defaultdict
from datetime import date, datetime

import pytest

from stamps import Stamp, StampType

EMPLOYEE_ID = 1
TARGET_DAY = date(2016, 4, 3)


class FakeStampsSource:
    """In-memory stamps source that records every day it was asked for."""

    def __init__(self, stamps=(), fail_on=()):
        self.stamps_by_day = defaultdict(list)
        for stamp in stamps:
            self.stamps_by_day[(stamp.employee_id, stamp.time.date())].append(stamp)
        self.fail_on = set(fail_on)
        self.requested_days = []

    def get_by_employee_id_for_day(self, employee_id, day):
        self.requested_days.append(day)
        if day in self.fail_on:
            raise ConnectionError(f'stamps store unavailable for {day}')
        return list(self.stamps_by_day[(employee_id, day)])


def at(hour, minute=0, second=0, day=TARGET_DAY):
    return datetime(day.year, day.month, day.day, hour, minute, second)


def stamp_in(hour, minute=0, day=TARGET_DAY, employee_id=EMPLOYEE_ID):
    return Stamp(employee_id, StampType.IN, at(hour, minute, day=day))


def stamp_out(hour, minute=0, day=TARGET_DAY, employee_id=EMPLOYEE_ID):
    return Stamp(employee_id, StampType.OUT, at(hour, minute, day=day))


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def regular_day():
    """Two correctly recorded shifts, 9-12 and 15-18."""
    return [stamp_in(9), stamp_out(12), stamp_in(15), stamp_out(18)]
