"""Tests for the same-type stamp sequence correction."""

from datetime import datetime

import pytest

from conftest import EMPLOYEE_ID, TARGET_DAY, at, stamp_in, stamp_out
from stamps import InvalidArgumentError, NotificationType, Stamp, StampType
from timesheet import verify_stamps_sequence


class TestVerifyStampsSequence:
    """Tests for verify_stamps_sequence."""

    def test_adds_stamp_at_middle_of_same_typed_ones(self, notifications):
        """Two Out-stamps get an Out-stamp half way between them."""
        stamps = [stamp_out(9), stamp_out(10)]

        corrected = verify_stamps_sequence(stamps, EMPLOYEE_ID, TARGET_DAY, notifications)

        assert len(corrected) == len(stamps) + 1
        assert corrected == [stamps[0], Stamp(EMPLOYEE_ID, StampType.OUT, at(9, 30)), stamps[1]]
        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.WARNING
        assert '09:30:00' in notifications[0].message

    def test_middle_rounds_down(self, notifications):
        """An odd gap puts the added stamp on the earlier microsecond."""
        first = Stamp(EMPLOYEE_ID, StampType.IN, datetime(2016, 4, 3, 9, 0, 0, 0))
        second = Stamp(EMPLOYEE_ID, StampType.IN, datetime(2016, 4, 3, 9, 0, 0, 3))

        corrected = verify_stamps_sequence([first, second], EMPLOYEE_ID, TARGET_DAY, notifications)

        assert corrected[1].time == datetime(2016, 4, 3, 9, 0, 0, 1)
        assert corrected[1].type == StampType.IN

    def test_one_tick_gap_keeps_both_stamps(self, notifications):
        """Stamps one microsecond apart have no middle, so nothing is added."""
        first = Stamp(EMPLOYEE_ID, StampType.OUT, datetime(2016, 4, 3, 9, 0, 0, 0))
        second = Stamp(EMPLOYEE_ID, StampType.OUT, datetime(2016, 4, 3, 9, 0, 0, 1))

        corrected = verify_stamps_sequence([first, second], EMPLOYEE_ID, TARGET_DAY, notifications)

        assert corrected == [first, second]
        assert notifications == []
        for a, b in zip(corrected, corrected[1:]):
            assert not (a.type == b.type and a.time == b.time)

    def test_deletes_one_of_two_equal_stamps(self, notifications):
        """Equal stamps are one event recorded twice; the first is kept."""
        first = stamp_out(9, 30)
        duplicate = stamp_out(9, 30)

        corrected = verify_stamps_sequence([first, duplicate], EMPLOYEE_ID, TARGET_DAY, notifications)

        assert len(corrected) == 1
        assert corrected[0] is first
        assert notifications[0].type == NotificationType.MESSAGE

    def test_collapses_run_of_duplicates(self, notifications):
        stamps = [stamp_in(8), stamp_in(8), stamp_in(8), stamp_out(12)]

        corrected = verify_stamps_sequence(stamps, EMPLOYEE_ID, TARGET_DAY, notifications)

        assert corrected == [stamp_in(8), stamp_out(12)]
        assert len(notifications) == 2

    def test_duplicate_then_gap(self, notifications):
        """A duplicate is dropped before the gap to the next same typed stamp is split."""
        stamps = [stamp_out(9), stamp_out(9), stamp_out(10)]

        corrected = verify_stamps_sequence(stamps, EMPLOYEE_ID, TARGET_DAY, notifications)

        assert corrected == [stamp_out(9), stamp_out(9, 30), stamp_out(10)]

    def test_added_stamp_gets_given_employee_id(self, notifications):
        stamps = [stamp_in(9, employee_id=7), stamp_in(11, employee_id=7)]

        corrected = verify_stamps_sequence(stamps, 7, TARGET_DAY, notifications)

        assert corrected[1].employee_id == 7

    def test_no_error_without_stamps(self, notifications):
        assert verify_stamps_sequence([], EMPLOYEE_ID, TARGET_DAY, notifications) == []
        assert notifications == []

    def test_no_change_for_correct_data(self, regular_day, notifications):
        expected = list(regular_day)

        corrected = verify_stamps_sequence(regular_day, EMPLOYEE_ID, TARGET_DAY, notifications)

        assert corrected == expected
        assert notifications == []

    def test_single_stamp_untouched(self, notifications):
        stamps = [stamp_out(17)]

        assert verify_stamps_sequence(stamps, EMPLOYEE_ID, TARGET_DAY, notifications) == stamps

    def test_input_list_not_modified(self, notifications):
        stamps = [stamp_out(9), stamp_out(10)]

        verify_stamps_sequence(stamps, EMPLOYEE_ID, TARGET_DAY, notifications)

        assert stamps == [stamp_out(9), stamp_out(10)]

    def test_long_run_is_bounded(self, notifications):
        """Each gap of the input is split once, added stamps are not split again."""
        stamps = [stamp_in(8), stamp_in(10), stamp_in(12)]

        corrected = verify_stamps_sequence(stamps, EMPLOYEE_ID, TARGET_DAY, notifications)

        assert [s.time for s in corrected] == [at(8), at(9), at(10), at(11), at(12)]
        assert len(notifications) == 2

    def test_throws_since_stamps_is_not_sequence(self, notifications):
        with pytest.raises(InvalidArgumentError):
            verify_stamps_sequence('Not array', EMPLOYEE_ID, TARGET_DAY, notifications)

    def test_throws_since_notifications_is_not_sequence(self):
        with pytest.raises(InvalidArgumentError):
            verify_stamps_sequence([], EMPLOYEE_ID, TARGET_DAY, 'Not array')

    def test_rejects_tuple_of_stamps(self, notifications):
        with pytest.raises(InvalidArgumentError):
            verify_stamps_sequence((stamp_in(9), stamp_out(10)), EMPLOYEE_ID, TARGET_DAY, notifications)
        assert notifications == []
