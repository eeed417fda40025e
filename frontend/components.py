import html
import json
from typing import Optional

import pandas as pd
import streamlit as st

from backend.join import JoinedTransaction, join_findings, orphan_findings

RISK_COLORS = {
    "Low": "#10B981",
    "Medium": "#F59E0B",
    "High": "#F97316",
    "Critical": "#EF4444",
}
BADGE_CLASSES = {
    "Low": "b-green",
    "Medium": "b-yellow",
    "High": "b-orange",
    "Critical": "b-red",
}

CSS = """
<style>
.block-container { padding-top: 1.2rem; padding-bottom: 2rem; max-width: 1300px; }
.small-muted { color: rgba(120,120,120,0.9); font-size: 0.92rem; }

.card {
  border: 1px solid rgba(128,128,128,0.25);
  border-radius: 18px;
  padding: 14px 16px;
  margin-bottom: 10px;
}
.card-title { font-weight: 650; margin-bottom: 6px; }
.badge {
  display:inline-block; padding:4px 10px; border-radius:999px; font-size:0.85rem;
  border:1px solid rgba(128,128,128,0.3); margin-right: 6px; margin-top: 4px;
}
.b-green{border-color:rgba(16,185,129,0.6); color:#10B981;}
.b-yellow{border-color:rgba(245,158,11,0.6); color:#F59E0B;}
.b-orange{border-color:rgba(249,115,22,0.6); color:#F97316;}
.b-red{border-color:rgba(239,68,68,0.6); color:#EF4444;}
.b-blue{border-color:rgba(80,160,255,0.6);}
.b-gray{border-color:rgba(128,128,128,0.4);}
.flag { display:inline-block; padding:1px 6px; margin:2px; border-radius:6px; font-size:0.75rem;
        border:1px solid rgba(239,68,68,0.35); color:#B91C1C; }
.amount-in { color:#059669; font-weight:700; }
.amount-out { color:#DC2626; font-weight:700; }

div.stButton > button, div.stDownloadButton > button { border-radius: 12px; }
</style>
"""


# -------------------- Helpers --------------------
def _e(value) -> str:
    return html.escape(str(value)) if value is not None else ""


def risk_badge(level: Optional[str]) -> str:
    klass = BADGE_CLASSES.get(level, "b-gray")
    label = (level or "Unknown").upper()
    return f"<span class='badge {klass}'>{_e(label)}</span>"


def humanize_flag(flag: str) -> str:
    return flag.replace("_", " ")


def score_fraction(score) -> float:
    try:
        return min(max(float(score) / 100.0, 0.0), 1.0)
    except (TypeError, ValueError):
        return 0.0


def format_amount(tx) -> str:
    """Signed amount, e.g. '+CAD 29,500' for an inflow and '-CAD 29,000' for an outflow."""
    if tx.amount is None:
        return "—"
    sign = "-" if tx.direction == "outflow" else "+"
    currency = f"{tx.currency} " if tx.currency else ""
    amount = f"{tx.amount:,.2f}"
    if amount.endswith(".00"):
        amount = amount[:-3]
    return f"{sign}{currency}{amount}"


def format_timestamp(ts: Optional[str]) -> str:
    if not ts:
        return "—"
    parsed = pd.to_datetime(ts, errors="coerce")
    if pd.isna(parsed):
        return ts
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


def cashflow_frame(fraud_input) -> Optional[pd.DataFrame]:
    summary = fraud_input.historical_summary
    if summary is None:
        return None
    return pd.DataFrame(
        {"amount": [summary.total_inflows or 0, summary.total_outflows or 0]},
        index=["Inflows", "Outflows"],
    )


def transactions_frame(joined) -> pd.DataFrame:
    rows = []
    for tx, finding in joined:
        rows.append({
            "tx_id": tx.tx_id,
            "timestamp": tx.timestamp,
            "direction": tx.direction,
            "amount": tx.amount,
            "currency": tx.currency,
            "counterparty": tx.counterparty_name,
            "country": tx.counterparty_country,
            "risk_level": finding.risk_level if finding else None,
            "risk_score": finding.risk_score_0_to_100 if finding else None,
            "action": finding.recommended_action if finding else None,
        })
    return pd.DataFrame(rows)


# -------------------- Render --------------------
def render_transaction_card(item: JoinedTransaction):
    tx, finding = item
    amount_class = "amount-out" if tx.direction == "outflow" else "amount-in"
    st.markdown(
        f"<div class='card'>"
        f"<div class='card-title'>{_e(tx.counterparty_name or tx.tx_id or 'Transaction')}"
        f" <span class='{amount_class}' style='float:right'>{_e(format_amount(tx))}</span></div>"
        f"<div class='small-muted'>{_e(tx.tx_id)} · {_e(format_timestamp(tx.timestamp))}</div>"
        f"<div class='small-muted'>Type: {_e(tx.payment_channel or '—')} · Country: {_e(tx.counterparty_country or '—')}</div>"
        f"<div class='small-muted'>Ref: {_e(tx.description or '—')}</div>"
        f"</div>",
        unsafe_allow_html=True,
    )
    if finding is None:
        return
    with st.expander(f"AI Analysis · {finding.risk_level} ({finding.risk_score_0_to_100:g}/100)",
                     expanded=finding.risk_level in ("High", "Critical")):
        st.markdown(risk_badge(finding.risk_level), unsafe_allow_html=True)
        st.write(finding.reasoning or "—")
        if finding.flags:
            st.markdown(
                "".join(f"<span class='flag'>{_e(humanize_flag(f))}</span>" for f in finding.flags),
                unsafe_allow_html=True,
            )
        st.markdown(f"**Action:** {finding.recommended_action}")


def render_dashboard(fraud_input, analysis):
    overall = analysis.overall_assessment
    pattern = analysis.pattern_analysis
    explain = analysis.explainability
    profile = fraud_input.sme_profile

    strip = st.columns([0.62, 0.38], vertical_alignment="center")
    with strip[0]:
        st.markdown(f"### 🧾 FraudGuard Assessment {risk_badge(overall.risk_level)}", unsafe_allow_html=True)
        st.markdown(
            f"<div class='small-muted'>Analyzing {_e(profile.business_name or 'unknown business')}"
            f" ({_e(profile.business_id or '—')})</div>",
            unsafe_allow_html=True,
        )
    with strip[1]:
        st.metric("Overall Risk Score", f"{overall.overall_risk_score_0_to_100:g}/100")
        st.progress(score_fraction(overall.overall_risk_score_0_to_100))

    st.markdown("<div class='card'><div class='card-title'>Primary Concern</div>", unsafe_allow_html=True)
    st.write(overall.primary_concern or "No significant concern detected.")
    st.markdown("</div>", unsafe_allow_html=True)

    left, right = st.columns([0.62, 0.38])

    with left:
        st.markdown("### Pattern Analysis")
        st.markdown("**Anomaly Summary**")
        st.info(pattern.anomaly_summary or "No significant anomalies detected.")

        c1, c2 = st.columns(2)
        with c1:
            st.markdown("<div class='card'><div class='card-title'>Structuring / Layering</div>", unsafe_allow_html=True)
            st.write(pattern.potential_structuring_or_layering or "—")
            st.markdown("</div>", unsafe_allow_html=True)
        with c2:
            gap = pattern.cash_flow_risk
            st.markdown(
                f"<div class='card'><div class='card-title'>Cash Flow Risk {risk_badge(gap.cash_gap_risk_level)}</div>",
                unsafe_allow_html=True,
            )
            st.write(gap.reasoning or "—")
            st.markdown("</div>", unsafe_allow_html=True)

        st.markdown(
            f"<div class='card'><div class='card-title'>Financial Distress "
            f"{risk_badge(pattern.financial_distress_risk_level)}</div>",
            unsafe_allow_html=True,
        )
        st.write(pattern.financial_distress_reasoning or "—")
        st.markdown("</div>", unsafe_allow_html=True)

        if pattern.suspicious_invoice_patterns:
            st.markdown("**Suspicious Invoices**")
            for p in pattern.suspicious_invoice_patterns:
                st.write(f"• {p}")

        st.markdown("### Risk Factors & Explainability")
        e1, e2 = st.columns(2)
        with e1:
            st.markdown("**Key Risk Drivers**")
            for factor in explain.key_factors_in_risk_assessment or ["—"]:
                st.write(f"• {factor}")
            if explain.limitations:
                st.markdown("**Limitations**")
                for item in explain.limitations:
                    st.caption(item)
        with e2:
            st.markdown("**SME Financial Context**")
            frame = cashflow_frame(fraud_input)
            if frame is None:
                st.caption("No historical summary supplied.")
            else:
                st.bar_chart(frame, height=200, horizontal=True)
                st.caption("Historical Total Inflows vs Outflows")

    joined = join_findings(fraud_input.recent_transactions, analysis.transaction_findings)
    with right:
        st.markdown(f"### Recent Activity <span class='badge b-gray'>{len(joined)} items</span>",
                    unsafe_allow_html=True)
        for item in joined:
            render_transaction_card(item)

    orphans = orphan_findings(fraud_input.recent_transactions, analysis.transaction_findings)
    if orphans:
        st.caption(f"{len(orphans)} finding(s) reference unknown transactions and are not shown.")

    with st.expander("Table view"):
        st.dataframe(transactions_frame(joined), width="stretch")

    st.download_button(
        "⬇️ Download analysis (JSON)",
        data=json.dumps(
            {"input": fraud_input.to_dict(), "analysis": analysis.model_dump(mode="json")},
            ensure_ascii=False,
            indent=2,
        ),
        file_name="fraudguard_analysis.json",
        mime="application/json",
        use_container_width=True,
    )
