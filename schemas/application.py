from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

LoanType = Literal[
    "permanent-acquisition",
    "permanent-refinance",
    "bridge-acquisition",
    "bridge-refinance",
    "construction",
]
PropertyType = Literal[
    "multifamily",
    "office",
    "retail",
    "industrial",
    "mixed-use",
    "self-storage",
    "land",
    "owner-occupied",
]
BorrowerType = Literal["individual", "llc", "corporation", "trust", "foreign-national"]
DownPaymentSource = Literal["cash", "securities", "equity-partner", "other"]
PropertyManagement = Literal["self-managed", "third-party"]
ApplicationStatus = Literal["draft", "submitted", "term-sheet", "underwriting", "closing", "closed"]
WizardStep = Literal[
    "quick-start",
    "property-basics",
    "loan-specifics",
    "financial-snapshot",
    "property-performance",
    "documents",
    "review-submit",
]

# Keys the server owns; they never come from a request body.
SERVER_OWNED_FIELDS = frozenset(
    {"id", "userId", "createdAt", "updatedAt", "submittedAt", "ltv", "dscr", "monthlyInterest"}
)
# Boolean columns with a default; an explicit null means "leave as is".
NON_NULLABLE_FLAGS = ("has_bankruptcy", "authorize_credit_pull", "is_income_producing")


def _number_to_str(value: Any) -> Any:
    """Carry amounts as decimal strings so they round-trip without float drift."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


DecimalStr = Annotated[Optional[str], BeforeValidator(_number_to_str)]


class TenantSchema(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    monthly_rent: DecimalStr = None
    lease_expiry: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ApplicationFields(BaseModel):
    """Every borrower-editable application field. All optional: drafts are partial."""

    loan_type: Optional[LoanType] = None
    loan_amount: DecimalStr = None
    property_city: Optional[str] = None
    property_state: Optional[str] = None

    property_name: Optional[str] = None
    property_address: Optional[str] = None
    property_type: Optional[PropertyType] = None
    square_footage: DecimalStr = None
    units: DecimalStr = None
    year_built: DecimalStr = None
    occupancy: DecimalStr = None

    entity_name: Optional[str] = None
    borrower_type: Optional[BorrowerType] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    years_experience: DecimalStr = None
    projects_completed: DecimalStr = None

    loan_specifics: Optional[dict[str, Any]] = None

    net_worth: DecimalStr = None
    liquid_assets: DecimalStr = None
    down_payment_source: Optional[DownPaymentSource] = None
    credit_score: DecimalStr = None
    has_bankruptcy: Optional[bool] = None
    authorize_credit_pull: Optional[bool] = None

    annual_gross_income: DecimalStr = None
    annual_operating_expenses: DecimalStr = None
    annual_noi: DecimalStr = Field(None, alias="annualNOI")
    major_tenants: Optional[list[TenantSchema]] = None
    recent_improvements: Optional[str] = None
    planned_improvements: Optional[str] = None
    is_income_producing: Optional[bool] = None
    property_management: Optional[PropertyManagement] = None

    status: Optional[ApplicationStatus] = None
    current_step: Optional[WizardStep] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_columns(self) -> dict[str, Any]:
        """Only the fields the client actually sent, keyed by column name."""
        out = self.model_dump(exclude_unset=True, by_alias=False)
        for flag in NON_NULLABLE_FLAGS:
            if flag in out and out[flag] is None:
                del out[flag]
        if "major_tenants" in out and out["major_tenants"] is not None:
            out["major_tenants"] = [
                TenantSchema.model_validate(t).model_dump(by_alias=True, exclude_none=True)
                for t in out["major_tenants"]
            ]
        return out


class ApplicationCreate(ApplicationFields):
    pass


class ApplicationUpdate(ApplicationFields):
    pass


# column name -> API key, derived from the schema so the two never drift
APPLICATION_FIELD_KEYS: dict[str, str] = {
    name: (field.alias or to_camel(name)) for name, field in ApplicationFields.model_fields.items()
}
