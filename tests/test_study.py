import unittest
from datetime import date, datetime, timedelta

from uthmhub.core.study import (
    DailyStudy,
    StudySession,
    daily_goal_progress,
    format_duration,
    format_duration_short,
    record_session,
    study_streak,
    total_for_day,
    week_total,
)


def session(started_at, seconds, subject="General"):
    return StudySession(
        id=f"{started_at.isoformat()}-{seconds}",
        subject=subject,
        started_at=started_at,
        ended_at=started_at + timedelta(seconds=seconds),
        duration=seconds,
    )


class StudyLogTests(unittest.TestCase):
    def test_short_sessions_are_dropped(self):
        history = record_session([], session(datetime(2026, 10, 18, 9, 0), 9))
        self.assertEqual(history, [])

    def test_sessions_accumulate_per_day(self):
        morning = session(datetime(2026, 10, 18, 9, 0), 1800, "Mathematics")
        evening = session(datetime(2026, 10, 18, 20, 0), 600, "Physics")
        next_day = session(datetime(2026, 10, 19, 8, 0), 120)

        history = record_session([], morning)
        history = record_session(history, evening)
        history = record_session(history, next_day)

        self.assertEqual([d.date for d in history], ["2026-10-18", "2026-10-19"])
        self.assertEqual(history[0].total_seconds, 2400)
        self.assertEqual([s.subject for s in history[0].sessions], ["Mathematics", "Physics"])
        self.assertEqual(total_for_day(history, date(2026, 10, 19)), 120)

    def test_input_history_is_not_mutated(self):
        first = record_session([], session(datetime(2026, 10, 18, 9, 0), 60))
        record_session(first, session(datetime(2026, 10, 18, 10, 0), 60))
        self.assertEqual(first[0].total_seconds, 60)
        self.assertEqual(len(first[0].sessions), 1)

    def test_week_total(self):
        history = [
            DailyStudy(date="2026-10-18", total_seconds=100),
            DailyStudy(date="2026-10-11", total_seconds=200),
            DailyStudy(date="2026-10-10", total_seconds=400),
        ]
        self.assertEqual(week_total(history, date(2026, 10, 18)), 300)

    def test_streak_stops_at_short_day(self):
        history = [
            DailyStudy(date="2026-10-16", total_seconds=120),
            DailyStudy(date="2026-10-18", total_seconds=3600),
            DailyStudy(date="2026-10-17", total_seconds=30),
        ]
        self.assertEqual(study_streak(history), 1)
        self.assertEqual(study_streak([]), 0)

    def test_formatting(self):
        self.assertEqual(format_duration(3725), "01:02:05")
        self.assertEqual(format_duration(0), "00:00:00")
        self.assertEqual(format_duration_short(3725), "1h 2m")
        self.assertEqual(format_duration_short(300), "5m")

    def test_goal_progress(self):
        self.assertEqual(daily_goal_progress(7200, 14400), 0.5)
        self.assertEqual(daily_goal_progress(20000, 14400), 1.0)

    def test_round_trip_through_dict(self):
        day = record_session([], session(datetime(2026, 10, 18, 9, 0), 90))[0]
        self.assertEqual(DailyStudy.from_dict(day.to_dict()), day)


if __name__ == "__main__":
    unittest.main()
