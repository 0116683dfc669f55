"""
Loan metrics derived from raw application fields: LTV, DSCR and first-month interest.

Inputs are camelCase application mappings as the API exchanges them. Amounts may be
numbers or decimal strings (thousands separators allowed). A value that cannot be
parsed omits the metric it feeds; nothing here raises on bad input.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Mapping, Optional

LTV_GOOD_MAX = 75.0
LTV_NEUTRAL_MAX = 85.0
DSCR_GOOD_MIN = 1.25
DSCR_NEUTRAL_MIN = 1.10

_CENT = Decimal("0.01")
# enough digits for any finite float at two decimals
_WIDE = Context(prec=400)


def _to_number(value: Any) -> float:
    """Parse an amount; blank means zero. Raises ValueError on anything non-numeric."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).replace(",", "").strip()
        number = float(text) if text else 0.0
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def _fmt(value: float) -> Optional[str]:
    """Two decimals, ties rounded away from zero. None when the value is not finite."""
    if not math.isfinite(value):
        return None
    return str(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP, context=_WIDE))


def calculate_monthly_payment(principal: float, annual_rate: float, term_years: float) -> float:
    """
    Standard amortizing payment M = P*r*(1+r)^n / ((1+r)^n - 1), rounded to cents.
    r is the monthly rate (annual percent / 100 / 12), n the number of monthly payments.
    A zero rate degrades to straight-line principal P / n.
    """
    monthly_rate = annual_rate / 100 / 12
    num_payments = term_years * 12
    if monthly_rate == 0:
        return principal / num_payments
    growth = (1 + monthly_rate) ** num_payments
    if growth == 1:
        # rate too small to register in floating point
        return principal / num_payments
    payment = principal * monthly_rate * growth / (growth - 1)
    return round(payment, 2)


def _ltv(loan_amount: Any, property_value: Any) -> Optional[str]:
    try:
        amount = _to_number(loan_amount)
        value = _to_number(property_value)
    except ValueError:
        return None
    if amount > 0 and value > 0:
        return _fmt(amount / value * 100)
    return None


def _monthly_interest(loan_amount: Any, interest_rate: Any) -> Optional[str]:
    try:
        amount = _to_number(loan_amount)
        rate = _to_number(interest_rate)
    except ValueError:
        return None
    if amount > 0 and rate > 0:
        return _fmt(amount * (rate / 100) / 12)
    return None


def _dscr(annual_noi: Any, loan_amount: Any, interest_rate: Any, loan_term: Any) -> Optional[str]:
    try:
        noi = _to_number(annual_noi)
        amount = _to_number(loan_amount)
        rate = _to_number(interest_rate)
        term = _to_number(loan_term)
    except ValueError:
        return None
    if noi > 0 and amount > 0 and rate > 0 and term > 0:
        try:
            annual_debt_service = calculate_monthly_payment(amount, rate, term) * 12
        except (OverflowError, ZeroDivisionError):
            return None
        if not math.isfinite(annual_debt_service) or annual_debt_service <= 0:
            return None
        return _fmt(noi / annual_debt_service)
    return None


def compute_metrics(application: Mapping[str, Any]) -> dict[str, str]:
    """
    Compute whichever of ltv / dscr / monthlyInterest the application supports.
    Metrics whose inputs are missing, non-positive or unparseable are left out.
    """
    specifics = application.get("loanSpecifics") or {}
    if not isinstance(specifics, Mapping):
        specifics = {}
    loan_amount = application.get("loanAmount")
    interest_rate = specifics.get("interestRate")

    metrics: dict[str, str] = {}
    ltv = _ltv(loan_amount, specifics.get("propertyValue"))
    if ltv is not None:
        metrics["ltv"] = ltv
    monthly_interest = _monthly_interest(loan_amount, interest_rate)
    if monthly_interest is not None:
        metrics["monthlyInterest"] = monthly_interest
    dscr = _dscr(application.get("annualNOI"), loan_amount, interest_rate, specifics.get("loanTerm"))
    if dscr is not None:
        metrics["dscr"] = dscr
    return metrics


def compute_noi(gross_income: Any, operating_expenses: Any) -> Optional[str]:
    """Annual NOI = gross income - operating expenses, when both are positive numbers."""
    try:
        income = _to_number(gross_income)
        expenses = _to_number(operating_expenses)
    except ValueError:
        return None
    if income > 0 and expenses > 0:
        return _fmt(income - expenses)
    return None


def assess_metrics(metrics: Mapping[str, Any]) -> dict[str, str]:
    """Rate LTV and DSCR for the review screen: good / neutral / warning."""
    result = {"ltv": "neutral", "dscr": "neutral"}
    try:
        ltv = _to_number(metrics.get("ltv"))
    except ValueError:
        ltv = 0.0
    if ltv > 0:
        result["ltv"] = "good" if ltv <= LTV_GOOD_MAX else "neutral" if ltv <= LTV_NEUTRAL_MAX else "warning"
    try:
        dscr = _to_number(metrics.get("dscr"))
    except ValueError:
        dscr = 0.0
    if dscr > 0:
        result["dscr"] = "good" if dscr >= DSCR_GOOD_MIN else "neutral" if dscr >= DSCR_NEUTRAL_MIN else "warning"
    return result
