import unittest

from uthmhub.core.predictor import (
    PlannedSubject,
    calculate_final_exam_score,
    calculate_min_grades,
    calculate_required_gpa,
)


class RequiredGPATests(unittest.TestCase):
    def test_target_above_maximum(self):
        result = calculate_required_gpa(3.00, 60, 3.50, 15)
        self.assertAlmostEqual(result.result, 5.50, places=2)
        self.assertFalse(result.achievable)
        self.assertIn("5.50", result.message)

    def test_achievable_target(self):
        result = calculate_required_gpa(3.00, 60, 3.10, 15)
        self.assertAlmostEqual(result.result, 3.50, places=2)
        self.assertTrue(result.achievable)
        self.assertIn("3.50", result.message)

    def test_no_completed_credits_requires_target(self):
        result = calculate_required_gpa(3.25, 0, 3.25, 18)
        self.assertAlmostEqual(result.result, 3.25, places=2)
        self.assertTrue(result.achievable)

    def test_target_already_exceeded(self):
        result = calculate_required_gpa(3.90, 100, 3.00, 15)
        self.assertEqual(result.result, 0)
        self.assertTrue(result.achievable)

    def test_no_next_credits(self):
        result = calculate_required_gpa(3.00, 60, 3.50, 0)
        self.assertEqual(result.result, 0)
        self.assertFalse(result.achievable)
        self.assertTrue(result.message)

    def test_non_finite_inputs_return_sentinel(self):
        for args in (
            (float("nan"), 60, 3.5, 15),
            (3.0, 60, float("inf"), 15),
            (float("-inf"), 60, 3.5, 15),
        ):
            result = calculate_required_gpa(*args)
            self.assertEqual(result.result, 0)
            self.assertFalse(result.achievable)
            self.assertEqual(result.message, "Inputs must be finite numbers.")

    def test_huge_target_is_not_achievable(self):
        result = calculate_required_gpa(0.0, 0, 1e308, 1)
        self.assertFalse(result.achievable)
        self.assertGreater(result.result, 4.0)


class MinGradesTests(unittest.TestCase):
    def setUp(self):
        self.subjects = [
            PlannedSubject("BIC10203", "Networks", 3),
            PlannedSubject("BIT20304", "Databases", 4),
            PlannedSubject("UQI10102", "Ethics", 1),
        ]

    def test_every_subject_gets_the_same_minimum(self):
        rows = calculate_min_grades(3.00, self.subjects)
        self.assertEqual([r.code for r in rows], ["BIC10203", "BIT20304", "UQI10102"])
        self.assertEqual({(r.min_grade, r.min_point) for r in rows}, {("B", 3.00)})
        self.assertEqual([r.credit_hour for r in rows], [3, 4, 1])

    def test_rounds_up_to_next_band(self):
        rows = calculate_min_grades(3.10, self.subjects)
        self.assertEqual(rows[0].min_grade, "B+")
        self.assertEqual(rows[0].min_point, 3.33)

    def test_lowest_four_point_grade_is_a(self):
        rows = calculate_min_grades(3.80, self.subjects)
        self.assertEqual(rows[0].min_grade, "A")
        self.assertEqual(rows[0].min_point, 4.00)

    def test_target_above_four_saturates(self):
        rows = calculate_min_grades(4.50, self.subjects)
        self.assertEqual({(r.min_grade, r.min_point) for r in rows}, {("A+", 4.00)})

    def test_zero_target_needs_only_f(self):
        rows = calculate_min_grades(0, self.subjects)
        self.assertEqual(rows[0].min_grade, "F")

    def test_no_subjects(self):
        self.assertEqual(calculate_min_grades(3.0, []), [])


class FinalExamTests(unittest.TestCase):
    def test_not_achievable(self):
        result = calculate_final_exam_score(65, 60, "A")
        self.assertAlmostEqual(result.result, 115.0, places=1)
        self.assertFalse(result.achievable)
        self.assertIn("115.0", result.message)

    def test_achievable(self):
        result = calculate_final_exam_score(90, 60, "B")
        self.assertAlmostEqual(result.result, 40.0, places=1)
        self.assertTrue(result.achievable)
        self.assertIn("40.0%", result.message)

    def test_already_secured(self):
        result = calculate_final_exam_score(100, 90, "B")
        self.assertEqual(result.result, 0)
        self.assertTrue(result.achievable)
        self.assertIn("already secured", result.message)

    def test_invalid_grade(self):
        for grade in ("Z", "a", ""):
            result = calculate_final_exam_score(70, 60, grade)
            self.assertEqual(result.result, 0)
            self.assertFalse(result.achievable)
            self.assertEqual(result.message, "Invalid grade.")

    def test_zero_final_weight(self):
        result = calculate_final_exam_score(70, 100, "B")
        self.assertEqual(result.result, 0)
        self.assertFalse(result.achievable)
        self.assertIn("0%", result.message)

    def test_rounded_to_one_decimal(self):
        # (70 - 50 * 0.3) / 0.7 = 78.571...
        result = calculate_final_exam_score(50, 30, "B")
        self.assertEqual(result.result, 78.6)

    def test_non_finite_inputs_return_sentinel(self):
        for carry, weight in ((float("nan"), 60), (70, float("nan")), (float("inf"), 50)):
            result = calculate_final_exam_score(carry, weight, "A")
            self.assertEqual(result.result, 0)
            self.assertFalse(result.achievable)
            self.assertEqual(result.message, "Inputs must be finite numbers.")

    def test_huge_carry_mark_does_not_raise(self):
        # (85 - 5e307) / 0.5 is finite but too large to round.
        result = calculate_final_exam_score(1e308, 50, "A")
        self.assertEqual(result.result, 0)
        self.assertTrue(result.achievable)


if __name__ == "__main__":
    unittest.main()
