import html
import json
import os

import streamlit as st
from dotenv import load_dotenv

from backend.prompt import SAMPLE_PAYLOAD
from frontend.client import AnalysisFailed, fetch_sample, ping_backend, request_analysis, validate_payload
from frontend.components import CSS, render_dashboard

load_dotenv()

DEFAULT_BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")
DEFAULT_TIMEOUT = int(os.getenv("BACKEND_TIMEOUT", "180"))

VIEW_INPUT = "input"
VIEW_DASHBOARD = "dashboard"

# -------------------- Page + Style --------------------
st.set_page_config(page_title="FraudGuard AI", layout="wide")
st.markdown(CSS, unsafe_allow_html=True)


# -------------------- Session state --------------------
def init_state():
    if "backend_url" not in st.session_state:
        st.session_state.backend_url = DEFAULT_BACKEND_URL
    if "json_input" not in st.session_state:
        st.session_state.json_input = load_sample_text()
    if "input_data" not in st.session_state:
        st.session_state.input_data = None
    if "analysis" not in st.session_state:
        st.session_state.analysis = None
    if "busy" not in st.session_state:
        st.session_state.busy = False
    if "error" not in st.session_state:
        st.session_state.error = None
    if "validation" not in st.session_state:
        st.session_state.validation = None
    if "active_view" not in st.session_state:
        st.session_state.active_view = VIEW_INPUT


def load_sample_text() -> str:
    try:
        sample = fetch_sample(st.session_state.get("backend_url", DEFAULT_BACKEND_URL))
    except AnalysisFailed:
        sample = SAMPLE_PAYLOAD
    return json.dumps(sample, ensure_ascii=False, indent=2)


def reset_input():
    st.session_state.json_input = load_sample_text()
    st.session_state.json_editor = st.session_state.json_input
    st.session_state.validation = None


def sync_editor():
    # The editor widget state is dropped while the dashboard is shown; json_input survives.
    st.session_state.json_input = st.session_state.json_editor


def start_analysis():
    # Set before the rerun so the button renders disabled while the call is in flight.
    st.session_state.busy = True
    st.session_state.error = None
    st.session_state.validation = None


def run_pending_analysis(timeout_s: int):
    try:
        fraud_input, analysis = request_analysis(
            st.session_state.backend_url, st.session_state.json_input, timeout_s
        )
    except AnalysisFailed as e:
        # input_data / analysis keep their previous values
        st.session_state.error = str(e)
    else:
        st.session_state.input_data = fraud_input
        st.session_state.analysis = analysis
        st.session_state.active_view = VIEW_DASHBOARD
    finally:
        st.session_state.busy = False


def show_view(view: str):
    if view == VIEW_DASHBOARD and st.session_state.analysis is None:
        return
    st.session_state.active_view = view


init_state()

# -------------------- Sidebar --------------------
st.sidebar.header("⚙️ Settings")
st.session_state.backend_url = st.sidebar.text_input("BACKEND_URL", st.session_state.backend_url)
timeout_s = st.sidebar.slider("Timeout (seconds)", 30, 600, DEFAULT_TIMEOUT, 30)

# -------------------- Header --------------------
ok, health = ping_backend(st.session_state.backend_url)
api_key_missing = not (ok and health and health.get("has_api_key"))

h1, h2 = st.columns([1.2, 0.8], vertical_alignment="center")
with h1:
    st.markdown("## 🛡️ FraudGuard AI")
    st.markdown("<div class='small-muted'>SME transactions → Mistral → fraud, AML &amp; distress assessment</div>",
                unsafe_allow_html=True)
with h2:
    badges = []
    if ok:
        badges.append("<span class='badge b-green'>Backend: OK</span>")
        if health.get("has_api_key"):
            badges.append(f"<span class='badge b-blue'>LLM: {html.escape(str(health.get('model', 'ready')))}</span>")
        else:
            badges.append("<span class='badge b-yellow'>LLM: No key</span>")
    else:
        badges.append("<span class='badge b-red'>Backend: Offline</span>")
    st.markdown("".join(badges), unsafe_allow_html=True)

nav = st.columns([0.18, 0.22, 0.60])
with nav[0]:
    st.button("Data Input", on_click=show_view, args=(VIEW_INPUT,), use_container_width=True,
              type="primary" if st.session_state.active_view == VIEW_INPUT else "secondary")
with nav[1]:
    st.button("Analysis Dashboard", on_click=show_view, args=(VIEW_DASHBOARD,),
              disabled=st.session_state.analysis is None, use_container_width=True,
              type="primary" if st.session_state.active_view == VIEW_DASHBOARD else "secondary")

st.markdown("---")

if not ok:
    st.error("Cannot reach backend. Ensure FastAPI is running and BACKEND_URL is correct.")
elif api_key_missing:
    st.error("API Key missing. Please restart the backend with MISTRAL_API_KEY set.")

if st.session_state.error:
    st.error(st.session_state.error)

# -------------------- Input view --------------------
if st.session_state.active_view == VIEW_INPUT:
    top = st.columns([0.52, 0.16, 0.16, 0.16], vertical_alignment="bottom")
    with top[0]:
        st.markdown("### Transaction Data Input")
        st.markdown("<div class='small-muted'>Paste your SME transaction JSON payload below.</div>",
                    unsafe_allow_html=True)
    with top[1]:
        st.button("Reset to Default", on_click=reset_input, disabled=st.session_state.busy,
                  use_container_width=True)
    with top[2]:
        validate_clicked = st.button("Validate", disabled=st.session_state.busy or not ok,
                                     use_container_width=True)
    with top[3]:
        st.button(
            "Analyzing..." if st.session_state.busy else "🚀 Analyze Risk",
            on_click=start_analysis,
            disabled=st.session_state.busy or api_key_missing,
            use_container_width=True,
        )

    if validate_clicked:
        try:
            st.session_state.validation = validate_payload(st.session_state.backend_url, st.session_state.json_input)
            st.session_state.error = None
        except AnalysisFailed as e:
            st.session_state.validation = None
            st.error(str(e))

    if st.session_state.validation:
        v = st.session_state.validation
        st.success(
            f"Payload OK: {v['transaction_count']} transactions, "
            f"inflow {v['total_inflow']:,.2f}, outflow {v['total_outflow']:,.2f}"
        )

    if "json_editor" not in st.session_state:
        st.session_state.json_editor = st.session_state.json_input
    st.text_area("Payload", key="json_editor", on_change=sync_editor, height=600, label_visibility="collapsed",
                 disabled=st.session_state.busy)

    if st.session_state.busy:
        with st.spinner("Running analysis..."):
            run_pending_analysis(timeout_s)
        st.rerun()

# -------------------- Dashboard view --------------------
elif st.session_state.input_data is not None and st.session_state.analysis is not None:
    render_dashboard(st.session_state.input_data, st.session_state.analysis)
