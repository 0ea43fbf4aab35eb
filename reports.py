from datetime import date, datetime, time, timedelta

import structlog

from stamps import (InconsistentSequenceError, InvalidArgumentError,
                    Notification, ReportProtocol, Stamp, StampsSource)
from timesheet import (NEXT_DAY_CUTOFF, as_day, fix_boundaries, pair_stamps,
                       total_worked, verify_stamps_sequence)

logger = structlog.get_logger(__name__)


class DailyReportsManager:
    """
    Makes daily reports of employees from their clock stamps.

    Every report owns its stamps and notifications, so one manager can be used
    for any number of employees and days.
    """

    def __init__(self, stamps_source: StampsSource, next_day_cutoff: time = NEXT_DAY_CUTOFF,
                 strict: bool = False):
        """
        Args:
            stamps_source: Where stamps of employees are read from.
            next_day_cutoff: Latest time of the next day whose Out-stamp still
                             closes a day missing its last Out-stamp.
            strict: Raise InconsistentSequenceError instead of reporting a
                    best-effort result when stamps cannot be paired.

        Raises:
            InvalidArgumentError: If `stamps_source` is None.
        """
        if stamps_source is None:
            raise InvalidArgumentError('Reference to source of stamps can not be None.')

        self.stamps_source = stamps_source
        self.next_day_cutoff = next_day_cutoff
        self.strict = strict

    def time_of_work_for_day(self, employee_id: int, day: date | datetime) -> ReportProtocol[timedelta]:
        """
        Computes the time an employee worked on a day.

        The result is computed from corrected stamps. Every correction is
        described in the notifications of the protocol; the result alone does
        not tell whether stamps were added or dropped.

        Args:
            employee_id: Target employee.
            day: Reporting day.

        Returns:
            Protocol with the worked time and the notifications of the computation.

        Raises:
            InconsistentSequenceError: In strict mode, if corrected stamps still
                                       contain stamps without a pair.
        """
        day = as_day(day)
        protocol: ReportProtocol[timedelta] = ReportProtocol(timedelta())

        stamps: list[Stamp] = self.collect_stamps_for_daily_report(employee_id, day, protocol)
        if not stamps:
            return protocol

        _, unpaired = pair_stamps(stamps)
        if unpaired:
            if self.strict:
                raise InconsistentSequenceError(
                    f'{len(unpaired)} stamp(s) of employee {employee_id} on {day} could not be paired.')
            protocol.notifications.append(Notification.from_config('unpaired_stamps', count=len(unpaired)))

        protocol.result = total_worked(stamps)
        logger.info('daily_report_done', employee_id=employee_id, day=str(day),
                    worked=str(protocol.result), notifications=len(protocol.notifications))
        return protocol

    def collect_stamps_for_daily_report(self, employee_id: int, day: date,
                                        protocol: ReportProtocol) -> list[Stamp]:
        """
        Gathers the stamps of a day, checks them and completes them if necessary.

        Args:
            employee_id: Target employee.
            day: Reporting day.
            protocol: Protocol of the report. Its notifications are modified in place.

        Returns:
            Corrected stamps of the day; empty if the employee has none.
        """
        stamps: list[Stamp] = list(self.stamps_source.get_by_employee_id_for_day(employee_id, day))
        if not stamps:
            return stamps

        stamps = verify_stamps_sequence(stamps, employee_id, day, protocol.notifications)
        return fix_boundaries(stamps, employee_id, day, self.stamps_source, protocol.notifications,
                              self.next_day_cutoff)
