"""Error taxonomy shared by the validators, the gateway and the HTTP layer."""

from typing import Any, Dict, List, Optional


class FraudGuardError(Exception):
    code = "fraudguard_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class MalformedJSON(FraudGuardError):
    code = "malformed_json"

    def __init__(self, reason: str, source: str = "payload"):
        super().__init__(f"Invalid JSON in {source}: {reason}")
        self.reason = reason
        self.source = source


class MissingRequiredField(FraudGuardError):
    code = "missing_required_field"

    def __init__(self, name: str, source: str = "payload"):
        super().__init__(f"Invalid JSON structure. Missing '{name}' in {source}.")
        self.name = name
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["field"] = self.name
        return out


class SchemaViolation(FraudGuardError):
    code = "schema_violation"

    def __init__(self, errors: List[Dict[str, Any]], source: str = "payload"):
        # errors: [{"loc": "recent_transactions.0.amount", "msg": "..."}]
        first = errors[0] if errors else {"loc": "?", "msg": "invalid"}
        more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        super().__init__(f"Schema violation in {source} at '{first['loc']}': {first['msg']}{more}")
        self.errors = errors
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["errors"] = self.errors
        return out


class EmptyResponse(FraudGuardError):
    code = "empty_response"

    def __init__(self):
        super().__init__("No response text received from the model.")


class CredentialMissing(FraudGuardError):
    code = "credential_missing"

    def __init__(self):
        super().__init__("MISTRAL_API_KEY missing. Set it in the environment or backend/.env and restart.")


class TransportError(FraudGuardError):
    code = "transport_error"

    def __init__(self, cause: Optional[BaseException]):
        super().__init__(f"Mistral API error: {cause}")
        self.cause = cause
