"""
Unit tests for trainer conflict detection.

A slot conflicts when another active lecture of the same trainer (any course)
sits on the same date, and at the same time when a time is requested.
Postponed lectures no longer block their slot.
"""

import unittest
from datetime import date

from app.domain.lectures.conflicts import ConflictDetector
from tests.factories import lecture_by_number, make_course, make_session_factory, make_trainer


class TestConflicts(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.trainer = make_trainer(self.db)
        # Mon/Wed 14:00 from 2024-01-01: lecture #5 is 2024-01-15 14:00
        self.course_a = make_course(self.db, self.trainer, title="Course A")
        # Tuesdays 10:00, never overlaps course A
        self.course_b = make_course(
            self.db,
            self.trainer,
            title="Course B",
            start_date=date(2024, 1, 2),
            lecture_days=("tue",),
            lecture_time="10:00",
        )
        self.detector = ConflictDetector(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_other_course_of_same_trainer_conflicts(self) -> None:
        x = lecture_by_number(self.db, self.course_a, 5)
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15), "14:00")
        self.assertTrue(check.has_conflict)
        self.assertEqual([c.lecture_id for c in check.conflicts], [x.id])
        self.assertEqual(check.conflicts[0].course_title, "Course A")
        self.assertEqual(check.conflicts[0].time, "14:00")

    def test_different_time_does_not_conflict(self) -> None:
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15), "16:00")
        self.assertFalse(check.has_conflict)
        self.assertEqual(check.conflicts, [])

    def test_date_only_request_matches_whole_day(self) -> None:
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15))
        self.assertTrue(check.has_conflict)

    def test_excluding_own_lecture_prevents_self_conflict(self) -> None:
        x = lecture_by_number(self.db, self.course_a, 5)
        check = self.detector.check_time_conflicts(
            self.course_a, date(2024, 1, 15), "14:00", exclude_lecture_id=x.id
        )
        self.assertFalse(check.has_conflict)

    def test_postponed_lecture_frees_its_slot(self) -> None:
        x = lecture_by_number(self.db, self.course_a, 5)
        x.attendance = "postponed_by_student"
        self.db.commit()
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15), "14:00")
        self.assertFalse(check.has_conflict)

    def test_held_lecture_still_occupies_slot(self) -> None:
        x = lecture_by_number(self.db, self.course_a, 5)
        x.attendance = "present"
        self.db.commit()
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15), "14:00")
        self.assertTrue(check.has_conflict)

    def test_lecture_without_time_uses_course_default(self) -> None:
        x = lecture_by_number(self.db, self.course_a, 5)
        x.time = None
        self.db.commit()
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15), "14:00")
        self.assertEqual([c.lecture_id for c in check.conflicts], [x.id])

    def test_other_trainer_never_conflicts(self) -> None:
        other = make_trainer(self.db, name="Omar")
        course_c = make_course(self.db, other, title="Course C", generate=False)
        check = self.detector.check_time_conflicts(course_c, date(2024, 1, 15), "14:00")
        self.assertFalse(check.has_conflict)

    def test_course_without_trainer(self) -> None:
        course = make_course(self.db, None, title="Unassigned", generate=False)
        check = self.detector.check_time_conflicts(course, date(2024, 1, 15), "14:00")
        self.assertFalse(check.has_conflict)

    def test_to_dict_is_json_ready(self) -> None:
        check = self.detector.check_time_conflicts(self.course_b, date(2024, 1, 15), "14:00")
        payload = check.to_dict()
        self.assertTrue(payload["has_conflict"])
        self.assertEqual(payload["conflicts"][0]["date"], "2024-01-15")
        self.assertEqual(payload["conflicts"][0]["type"], "trainer")


if __name__ == "__main__":
    unittest.main()
