import requests

from backend.schemas import FraudAnalysisOutput, FraudInput


class AnalysisFailed(Exception):
    """Anything that kept an analysis from completing, already phrased for the user."""


def ping_backend(url: str):
    try:
        r = requests.get(f"{url}/health", timeout=3)
        if r.status_code == 200:
            return True, r.json()
        return False, None
    except requests.exceptions.RequestException:
        return False, None


def error_message(r) -> str:
    try:
        detail = r.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, dict) and detail.get("message"):
        return detail["message"]
    return f"Backend error ({r.status_code}): {r.text}"


def _post(url: str, endpoint: str, payload_text: str, timeout: float):
    try:
        r = requests.post(f"{url}/{endpoint}", json={"payload": payload_text}, timeout=timeout)
    except requests.exceptions.ConnectionError as e:
        raise AnalysisFailed("Cannot reach backend. Ensure FastAPI is running and BACKEND_URL is correct.") from e
    except requests.exceptions.Timeout as e:
        raise AnalysisFailed("Backend timed out. Increase the timeout and try again.") from e
    if r.status_code != 200:
        raise AnalysisFailed(error_message(r))
    return r.json()


def fetch_sample(url: str) -> dict:
    try:
        r = requests.get(f"{url}/sample", timeout=5)
    except requests.exceptions.RequestException as e:
        raise AnalysisFailed(f"Cannot load sample payload: {e}") from e
    if r.status_code != 200:
        raise AnalysisFailed(error_message(r))
    return r.json()


def validate_payload(url: str, payload_text: str, timeout: float = 10) -> dict:
    return _post(url, "validate", payload_text, timeout)["summary"]


def request_analysis(url: str, payload_text: str, timeout: float):
    """POST the raw editor text to /analyze and rebuild the typed input and result."""
    body = _post(url, "analyze", payload_text, timeout)
    return FraudInput.model_validate(body["input"]), FraudAnalysisOutput.model_validate(body["analysis"])
