"""
Which fields each wizard step requires, and when.

Each entry is either always required (condition is None) or conditionally required
by a predicate over the whole application (loan type, property type).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

Predicate = Callable[[Mapping[str, Any]], bool]

NON_INCOME_PROPERTY_TYPES = frozenset({"land", "owner-occupied"})


@dataclass(frozen=True)
class FieldRequirement:
    step_id: int
    field_name: str
    data_path: str
    label: str
    condition: Optional[Predicate] = None

    def applies_to(self, data: Mapping[str, Any]) -> bool:
        return self.condition is None or bool(self.condition(data))


def _loan_type(data: Mapping[str, Any]) -> str:
    value = data.get("loanType")
    return value if isinstance(value, str) else ""


def loan_type_contains(fragment: str) -> Predicate:
    return lambda data: fragment in _loan_type(data)


def loan_type_is(loan_type: str) -> Predicate:
    return lambda data: _loan_type(data) == loan_type


def is_income_producing(data: Mapping[str, Any]) -> bool:
    property_type = data.get("propertyType") or ""
    return property_type not in NON_INCOME_PROPERTY_TYPES and _loan_type(data) != "construction"


def _permanent_or_bridge(data: Mapping[str, Any]) -> bool:
    return "permanent" in _loan_type(data) or "bridge" in _loan_type(data)


REQUIREMENTS: tuple[FieldRequirement, ...] = (
    FieldRequirement(1, "loanType", "loanType", "Loan Type"),
    FieldRequirement(1, "loanAmount", "loanAmount", "Loan Amount"),
    FieldRequirement(1, "propertyCity", "propertyCity", "Property City"),
    FieldRequirement(1, "propertyState", "propertyState", "State"),

    FieldRequirement(2, "propertyName", "propertyName", "Property Name"),
    FieldRequirement(2, "propertyType", "propertyType", "Property Type"),
    FieldRequirement(2, "entityName", "entityName", "Entity Name"),
    FieldRequirement(2, "borrowerType", "borrowerType", "Borrower Type"),
    FieldRequirement(2, "contactEmail", "contactEmail", "Contact Email"),
    FieldRequirement(2, "contactPhone", "contactPhone", "Contact Phone"),

    FieldRequirement(3, "propertyValue", "loanSpecifics.propertyValue", "Property Value"),
    FieldRequirement(3, "loanTerm", "loanSpecifics.loanTerm", "Loan Term", _permanent_or_bridge),
    FieldRequirement(3, "amortization", "loanSpecifics.amortization", "Amortization", loan_type_contains("permanent")),
    FieldRequirement(3, "exitStrategy", "loanSpecifics.exitStrategy", "Exit Strategy", loan_type_contains("bridge")),
    FieldRequirement(
        3, "currentLoanBalance", "loanSpecifics.currentLoanBalance", "Current Loan Balance",
        loan_type_contains("refinance"),
    ),
    FieldRequirement(
        3, "constructionBudget", "loanSpecifics.constructionBudget", "Construction Budget",
        loan_type_is("construction"),
    ),
    FieldRequirement(
        3, "constructionPeriod", "loanSpecifics.constructionPeriod", "Construction Period",
        loan_type_is("construction"),
    ),

    FieldRequirement(4, "netWorth", "netWorth", "Net Worth"),
    FieldRequirement(4, "liquidAssets", "liquidAssets", "Liquid Assets"),
    FieldRequirement(4, "downPaymentSource", "downPaymentSource", "Down Payment Source"),

    FieldRequirement(5, "annualGrossIncome", "annualGrossIncome", "Annual Gross Income", is_income_producing),
    FieldRequirement(
        5, "annualOperatingExpenses", "annualOperatingExpenses", "Annual Operating Expenses",
        is_income_producing,
    ),
    FieldRequirement(5, "occupancy", "occupancy", "Occupancy Rate", is_income_producing),
)


def requirements_for_step(step_id: int) -> tuple[FieldRequirement, ...]:
    return tuple(r for r in REQUIREMENTS if r.step_id == step_id)


def label_for(step_id: int, field_name: str) -> str:
    for r in requirements_for_step(step_id):
        if r.field_name == field_name:
            return r.label
    return field_name
