"""
Loan metrics: LTV, DSCR, first-month interest, NOI and the review-screen ratings.
Run from the project root: python -m pytest tests/test_metrics.py -v
"""
import unittest

from services.metrics import assess_metrics, calculate_monthly_payment, compute_metrics, compute_noi


def _application(**overrides):
    app = {
        "loanAmount": "3000000",
        "annualNOI": "450000",
        "loanSpecifics": {"propertyValue": "4000000", "interestRate": "5.5", "loanTerm": "10"},
    }
    app.update(overrides)
    return app


class TestComputeMetrics(unittest.TestCase):
    def test_ltv_as_two_decimal_string(self):
        metrics = compute_metrics(_application())
        self.assertEqual(metrics["ltv"], "75.00")

    def test_monthly_interest(self):
        metrics = compute_metrics(_application())
        self.assertEqual(metrics["monthlyInterest"], "13750.00")

    def test_dscr_reference_loan(self):
        """$3M at 5.5% over 10 years pays about $32,558/month; NOI $450k -> 1.15."""
        metrics = compute_metrics(_application())
        self.assertEqual(metrics["dscr"], "1.15")
        annual_debt_service = calculate_monthly_payment(3_000_000, 5.5, 10) * 12
        self.assertEqual(metrics["dscr"], f"{450_000 / annual_debt_service:.2f}")

    def test_payment_rounded_to_cents(self):
        payment = calculate_monthly_payment(3_000_000, 5.5, 10)
        self.assertAlmostEqual(payment, 32557.84, delta=1.0)
        self.assertEqual(payment, round(payment, 2))

    def test_zero_rate_is_straight_line(self):
        self.assertEqual(calculate_monthly_payment(120_000, 0, 10), 1000.0)

    def test_zero_rate_omits_interest_and_dscr(self):
        app = _application(loanSpecifics={"propertyValue": "4000000", "interestRate": "0", "loanTerm": "10"})
        metrics = compute_metrics(app)
        self.assertEqual(metrics, {"ltv": "75.00"})

    def test_thousands_separators_accepted(self):
        metrics = compute_metrics(_application(loanAmount="3,000,000"))
        self.assertEqual(metrics["ltv"], "75.00")

    def test_unparseable_input_omits_only_its_metrics(self):
        metrics = compute_metrics(_application(annualNOI="lots"))
        self.assertNotIn("dscr", metrics)
        self.assertEqual(metrics["ltv"], "75.00")
        self.assertEqual(metrics["monthlyInterest"], "13750.00")

    def test_missing_inputs_produce_nothing(self):
        self.assertEqual(compute_metrics({}), {})
        self.assertEqual(compute_metrics({"loanAmount": "100", "loanSpecifics": None}), {})

    def test_numeric_inputs(self):
        metrics = compute_metrics(
            {"loanAmount": 750_000, "loanSpecifics": {"propertyValue": 1_000_000}}
        )
        self.assertEqual(metrics["ltv"], "75.00")

    def test_non_positive_amount(self):
        self.assertNotIn("ltv", compute_metrics(_application(loanAmount="-5")))

    def test_tiny_rate_falls_back_to_straight_line(self):
        """A rate too small to move (1+r)^n off 1.0 must not divide by zero."""
        app = _application(loanSpecifics={"propertyValue": "4000000", "interestRate": "1e-18", "loanTerm": "10"})
        metrics = compute_metrics(app)
        # 3,000,000 over 120 payments = 25,000/month; 450,000 / 300,000
        self.assertEqual(metrics["dscr"], "1.50")
        self.assertEqual(metrics["ltv"], "75.00")
        self.assertEqual(calculate_monthly_payment(3_000_000, 1e-18, 10), 25_000.0)

    def test_ties_round_half_up(self):
        metrics = compute_metrics({"loanAmount": "1", "loanSpecifics": {"propertyValue": "800"}})
        self.assertEqual(metrics["ltv"], "0.13")

    def test_overflowing_ratio_is_omitted(self):
        metrics = compute_metrics({"loanAmount": "1e300", "loanSpecifics": {"propertyValue": "1e-300"}})
        self.assertNotIn("ltv", metrics)

    def test_large_amounts_keep_two_decimals(self):
        metrics = compute_metrics({"loanAmount": "1e30", "loanSpecifics": {"interestRate": "12"}})
        self.assertTrue(metrics["monthlyInterest"].endswith(".00"))


class TestNoiAndRatings(unittest.TestCase):
    def test_compute_noi(self):
        self.assertEqual(compute_noi("500,000", "50000"), "450000.00")

    def test_compute_noi_requires_both(self):
        self.assertIsNone(compute_noi("500000", ""))
        self.assertIsNone(compute_noi("abc", "100"))

    def test_ltv_ratings(self):
        self.assertEqual(assess_metrics({"ltv": "75.00"})["ltv"], "good")
        self.assertEqual(assess_metrics({"ltv": "80.00"})["ltv"], "neutral")
        self.assertEqual(assess_metrics({"ltv": "90.00"})["ltv"], "warning")

    def test_dscr_ratings(self):
        self.assertEqual(assess_metrics({"dscr": "1.30"})["dscr"], "good")
        self.assertEqual(assess_metrics({"dscr": "1.15"})["dscr"], "neutral")
        self.assertEqual(assess_metrics({"dscr": "1.00"})["dscr"], "warning")

    def test_missing_metrics_are_neutral(self):
        self.assertEqual(assess_metrics({}), {"ltv": "neutral", "dscr": "neutral"})


if __name__ == "__main__":
    unittest.main()
