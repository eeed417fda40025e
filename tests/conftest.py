import copy
import json

import pytest

from backend import config
from backend.prompt import SAMPLE_PAYLOAD

ANALYSIS = {
    "overall_assessment": {
        "risk_level": "High",
        "primary_concern": "Pass-through of offshore funds to a new counterparty within 30 minutes.",
        "overall_risk_score_0_to_100": 78,
    },
    "transaction_findings": [
        {
            "tx_id": "TX-99101",
            "risk_level": "High",
            "risk_score_0_to_100": 80,
            "flags": ["offshore_counterparty", "new_counterparty"],
            "reasoning": "Large inflow from a new UAE counterparty, well above the historical maximum.",
            "recommended_action": "File internal alert",
        },
        {
            "tx_id": "TX-99102",
            "risk_level": "Critical",
            "risk_score_0_to_100": 88,
            "flags": ["rapid_outflow"],
            "reasoning": "Near-identical amount sent onward to Nigeria shortly after the inflow.",
            "recommended_action": "Consider SAR/STR (if jurisdiction requires)",
        },
    ],
    "pattern_analysis": {
        "anomaly_summary": "Inflow and outflow of similar size on the same day.",
        "suspicious_invoice_patterns": ["Invoice references do not match the SME's usual format."],
        "potential_structuring_or_layering": "Yes - funds appear to pass straight through the account.",
        "cash_flow_risk": {"cash_gap_risk_level": "Low", "reasoning": "Balances stay positive."},
        "financial_distress_risk_level": "Low",
        "financial_distress_reasoning": "Historical inflows exceed outflows.",
    },
    "explainability": {
        "key_factors_in_risk_assessment": ["New offshore counterparties", "Amounts above historical max"],
        "limitations": ["No account balance data supplied."],
    },
}


class StubGenerator:
    """Returns canned text and records every call."""

    model = "stub"

    def __init__(self, text=None, exc=None):
        self.text = text
        self.exc = exc
        self.calls = []

    def generate(self, system_prompt, prompt):
        self.calls.append((system_prompt, prompt))
        if self.exc is not None:
            raise self.exc
        return self.text


@pytest.fixture
def sample_payload():
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_text(sample_payload):
    return json.dumps(sample_payload, indent=2)


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(ANALYSIS)


@pytest.fixture
def analysis_text(analysis_payload):
    return json.dumps(analysis_payload)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(config, "API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.setattr(config, "API_KEY", None)
