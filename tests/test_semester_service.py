import os
import tempfile
import unittest

from uthmhub.services.semester_service import SemesterService, SemesterServiceError
from uthmhub.services.storage import SEMESTERS_KEY, Storage


class SemesterServiceTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = Storage(os.path.join(self.tmp.name, "uthmhub.db"))
        self.service = SemesterService(self.store)

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def test_add_semester_default_names(self):
        first = self.service.add_semester()
        second = self.service.add_semester()
        named = self.service.add_semester("Year 2 Sem 1")
        self.assertEqual([first.name, second.name, named.name], ["Semester 1", "Semester 2", "Year 2 Sem 1"])

    def test_subjects_by_grade_and_marks(self):
        sem = self.service.add_semester()
        by_grade = self.service.add_subject(sem.id, code="BIC10203", name="Networks", credit_hour=3, grade="A")
        by_marks = self.service.add_subject(sem.id, code="", name="", credit_hour=2, marks=72.4)

        self.assertEqual((by_grade.grade, by_grade.point_value), ("A", 4.00))
        self.assertEqual((by_marks.grade, by_marks.point_value), ("B", 3.00))
        self.assertEqual(by_marks.marks_percentage, 72.4)
        self.assertEqual((by_marks.code, by_marks.name), ("SUB", "Subject"))
        self.assertAlmostEqual(self.service.get_semester(sem.id).gpa, 3.60, places=2)

    def test_gpa_tracks_every_change(self):
        sem = self.service.add_semester()
        a = self.service.add_subject(sem.id, code="A1", name="One", credit_hour=3, grade="A")
        b = self.service.add_subject(sem.id, code="B1", name="Two", credit_hour=3, grade="C")
        self.assertAlmostEqual(self.service.get_semester(sem.id).gpa, 3.00, places=2)

        self.service.set_subject_grade(sem.id, b.id, "B")
        self.assertAlmostEqual(self.service.get_semester(sem.id).gpa, 3.50, places=2)

        self.service.edit_subject(sem.id, b.id, code="B1", name="Two", credit_hour=1)
        self.assertAlmostEqual(self.service.get_semester(sem.id).gpa, 3.75, places=2)

        self.service.remove_subject(sem.id, a.id)
        self.assertAlmostEqual(self.service.get_semester(sem.id).gpa, 3.00, places=2)

    def test_edit_subject_keeps_grade(self):
        sem = self.service.add_semester()
        sub = self.service.add_subject(sem.id, code="X", name="Y", credit_hour=3, grade="B+")
        edited = self.service.edit_subject(sem.id, sub.id, code=" ", name="", credit_hour=4)
        self.assertEqual((edited.code, edited.name, edited.credit_hour), ("SUB", "Unknown", 4))
        self.assertEqual((edited.grade, edited.point_value), ("B+", 3.33))

    def test_changes_are_persisted(self):
        sem = self.service.add_semester()
        self.service.add_subject(sem.id, code="BIC10203", name="Networks", credit_hour=3, grade="A")
        self.service.rename_semester(sem.id, "Semester 1 2025/2026")

        reloaded = SemesterService(self.store)
        [loaded] = reloaded.list_semesters()
        self.assertEqual(loaded.name, "Semester 1 2025/2026")
        self.assertEqual(loaded.subjects[0].code, "BIC10203")
        self.assertEqual(reloaded.cgpa(), 4.0)

    def test_remove_semester(self):
        sem = self.service.add_semester()
        self.service.remove_semester(sem.id)
        self.assertEqual(self.service.list_semesters(), [])
        with self.assertRaises(SemesterServiceError):
            self.service.remove_semester(sem.id)

    def test_invalid_requests(self):
        sem = self.service.add_semester()
        with self.assertRaises(SemesterServiceError):
            self.service.add_subject("missing", code="X", name="Y", credit_hour=3, grade="A")
        with self.assertRaises(SemesterServiceError):
            self.service.add_subject(sem.id, code="X", name="Y", credit_hour=0, grade="A")
        with self.assertRaises(SemesterServiceError):
            self.service.add_subject(sem.id, code="X", name="Y", credit_hour=3)
        with self.assertRaises(SemesterServiceError):
            self.service.remove_subject(sem.id, "missing")

    def test_cgpa_and_credits(self):
        sem1 = self.service.add_semester()
        sem2 = self.service.add_semester()
        self.service.add_subject(sem1.id, code="A", name="A", credit_hour=3, grade="A")
        self.service.add_subject(sem2.id, code="B", name="B", credit_hour=1, grade="C")
        self.assertAlmostEqual(self.service.cgpa(), 3.50, places=2)
        self.assertEqual(self.service.total_credits(), 4)
        self.assertEqual([name for name, _, _ in self.service.trend()], ["Semester 1", "Semester 2"])

    def test_import_transcript(self):
        self.service.add_semester()
        sem = self.service.import_transcript("BIC10203 COMPUTER NETWORK 1 3 A PASS\nBIT20304 DATABASE 1 4 B PASS")
        self.assertEqual(sem.name, "Extracted Semester 2")
        self.assertEqual([s.code for s in sem.subjects], ["BIC10203", "BIT20304"])
        self.assertAlmostEqual(sem.gpa, 3.43, places=2)

    def test_import_without_subjects(self):
        with self.assertRaises(SemesterServiceError):
            self.service.import_transcript("nothing to see here")
        self.assertEqual(self.service.list_semesters(), [])

    def test_malformed_stored_records_are_skipped(self):
        self.store.set_json(
            SEMESTERS_KEY,
            [
                {
                    "id": "s1",
                    "name": "Semester 1",
                    "subjects": [
                        {"id": "a", "code": "BIC10203", "name": "Networks", "credit_hour": 3, "grade": "A"},
                        {"id": "b", "code": "BAD1", "credit_hour": "three", "grade": "B"},
                        {"id": "c", "code": "BAD2", "credit_hour": 2, "grade": "B", "marks_percentage": "n/a"},
                        "not a subject",
                    ],
                },
                "not a semester",
                {"id": "s2", "name": "Semester 2", "subjects": 42},
            ],
        )

        service = SemesterService(self.store)

        semesters = service.list_semesters()
        self.assertEqual([s.id for s in semesters], ["s1", "s2"])
        self.assertEqual([s.code for s in semesters[0].subjects], ["BIC10203"])
        self.assertEqual(semesters[1].subjects, [])
        self.assertAlmostEqual(service.cgpa(), 4.00, places=2)

    def test_non_list_stored_value_is_ignored(self):
        self.store.set_json(SEMESTERS_KEY, {"oops": True})
        self.assertEqual(SemesterService(self.store).list_semesters(), [])


if __name__ == "__main__":
    unittest.main()
