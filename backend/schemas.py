"""
Data contract for the fraud analysis round-trip.

Two tiers of validation:
- structural: the text is JSON and the top-level keys the dashboard relies on are present
  (MalformedJSON / MissingRequiredField / EmptyResponse)
- deep: the document is built into frozen pydantic models, which checks field shapes and
  the risk / action vocabularies (SchemaViolation)
"""

import json
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from backend.errors import EmptyResponse, MalformedJSON, MissingRequiredField, SchemaViolation

RiskLevel = Literal["Low", "Medium", "High", "Critical"]
GapLevel = Literal["Low", "Medium", "High"]
Number = Union[int, float]

RISK_LEVELS = ("Low", "Medium", "High", "Critical")
SAR_ACTION = "Consider SAR/STR (if jurisdiction requires)"
RECOMMENDED_ACTIONS = (
    "No action",
    "Monitor",
    "Request more information",
    "File internal alert",
    SAR_ACTION,
)

REQUIRED_INPUT_KEYS = ("sme_profile", "recent_transactions")
REQUIRED_OUTPUT_SECTIONS = ("overall_assessment", "transaction_findings", "pattern_analysis", "explainability")


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")


class _InputRecord(_Record):
    @field_validator("*", mode="before")
    @classmethod
    def _null_means_default(cls, v, info):
        # An explicit null in the payload is the same as leaving the field out.
        if v is None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return v


# -------------------- Input --------------------

class ExpectedActivityProfile(_InputRecord):
    avg_monthly_inflows: Optional[Number] = None
    avg_monthly_outflows: Optional[Number] = None
    primary_channels: List[str] = Field(default_factory=list)
    main_counterparty_countries: List[str] = Field(default_factory=list)


class SMEProfile(_InputRecord):
    business_id: Optional[str] = None
    business_name: Optional[str] = None
    industry: Optional[str] = None
    jurisdiction: Optional[str] = None
    monthly_turnover_estimate: Optional[Number] = None
    risk_rating_internal: Optional[str] = None
    onboarded_date: Optional[str] = None
    expected_activity_profile: Optional[ExpectedActivityProfile] = None


class Transaction(_InputRecord):
    tx_id: Optional[str] = None
    timestamp: Optional[str] = None
    direction: Optional[Literal["inflow", "outflow"]] = None
    amount: Optional[Number] = None
    currency: Optional[str] = None
    counterparty_name: Optional[str] = None
    counterparty_country: Optional[str] = None
    payment_channel: Optional[str] = None
    description: Optional[str] = None
    invoice_reference: Optional[str] = None
    is_new_counterparty: Optional[bool] = None
    historical_avg_amount_for_counterparty: Number = 0  # 0 = unknown
    kyc_risk_flags: List[str] = Field(default_factory=list)
    is_related_party: Optional[bool] = None


class HistoricalSummary(_InputRecord):
    lookback_period_days: Optional[int] = None
    total_inflows: Optional[Number] = None
    total_outflows: Optional[Number] = None
    avg_txn_amount: Optional[Number] = None
    max_txn_amount: Optional[Number] = None
    typical_counterparty_countries: List[str] = Field(default_factory=list)
    unusual_activity_flags_last_90_days: List[str] = Field(default_factory=list)


class FraudInput(_Record):
    sme_profile: SMEProfile
    recent_transactions: List[Transaction]
    historical_summary: Optional[HistoricalSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        # Only what the user supplied; defaults are not written back into the payload.
        return self.model_dump(mode="json", exclude_unset=True)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)


# -------------------- Output --------------------

class OverallAssessment(_Record):
    risk_level: RiskLevel
    primary_concern: str = ""
    overall_risk_score_0_to_100: float = Field(ge=0, le=100)


class TransactionFinding(_Record):
    tx_id: str
    risk_level: RiskLevel
    risk_score_0_to_100: float = Field(ge=0, le=100)
    flags: List[str] = Field(default_factory=list)
    reasoning: str = ""
    recommended_action: str

    @field_validator("recommended_action")
    @classmethod
    def _known_action(cls, v: str) -> str:
        v = v.strip()
        if v == "Consider SAR/STR":
            return SAR_ACTION
        if v not in RECOMMENDED_ACTIONS:
            raise ValueError(f"must be one of {', '.join(RECOMMENDED_ACTIONS)}")
        return v


class CashFlowRisk(_Record):
    cash_gap_risk_level: GapLevel
    reasoning: str = ""


class PatternAnalysis(_Record):
    anomaly_summary: str = ""
    suspicious_invoice_patterns: List[str] = Field(default_factory=list)
    potential_structuring_or_layering: str = ""
    cash_flow_risk: CashFlowRisk
    financial_distress_risk_level: GapLevel
    financial_distress_reasoning: str = ""


class Explainability(_Record):
    key_factors_in_risk_assessment: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)


class FraudAnalysisOutput(_Record):
    overall_assessment: OverallAssessment
    transaction_findings: List[TransactionFinding]
    pattern_analysis: PatternAnalysis
    explainability: Explainability


# -------------------- Validators --------------------

def _load_json(text: str, source: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedJSON(str(e), source=source) from e


def _require_keys(data: Any, keys, source: str) -> Dict[str, Any]:
    # A non-object top-level value has none of the keys.
    if not isinstance(data, dict):
        raise MissingRequiredField(keys[0], source=source)
    for key in keys:
        if data.get(key) is None:
            raise MissingRequiredField(key, source=source)
    return data


_UNION_TAGS = {"int", "float"}


def _violations(exc: ValidationError) -> List[Dict[str, Any]]:
    # Number fields report one error per union branch; collapse them onto the field path.
    out: List[Dict[str, Any]] = []
    seen = set()
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"] if p not in _UNION_TAGS)
        if loc in seen:
            continue
        seen.add(loc)
        out.append({"loc": loc, "msg": err["msg"]})
    return out


def parse_input(text: Optional[str]) -> FraudInput:
    """Validate user-supplied payload text into a FraudInput."""
    data = _require_keys(_load_json(text or "", "payload"), REQUIRED_INPUT_KEYS, "payload")
    try:
        return FraudInput.model_validate(data)
    except ValidationError as e:
        raise SchemaViolation(_violations(e), source="payload") from e


def parse_output(text: Optional[str]) -> FraudAnalysisOutput:
    """Validate model-returned text into a FraudAnalysisOutput."""
    if text is None or not text.strip():
        raise EmptyResponse()
    source = "model response"
    data = _require_keys(_load_json(text, source), REQUIRED_OUTPUT_SECTIONS, source)
    try:
        return FraudAnalysisOutput.model_validate(data)
    except ValidationError as e:
        raise SchemaViolation(_violations(e), source=source) from e


def summarize_input(fraud_input: FraudInput) -> Dict[str, Any]:
    inflow = sum(t.amount or 0 for t in fraud_input.recent_transactions if t.direction == "inflow")
    outflow = sum(t.amount or 0 for t in fraud_input.recent_transactions if t.direction == "outflow")
    return {
        "business_id": fraud_input.sme_profile.business_id,
        "transaction_count": len(fraud_input.recent_transactions),
        "total_inflow": inflow,
        "total_outflow": outflow,
    }
