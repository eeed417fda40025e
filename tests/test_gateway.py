import json
from unittest.mock import MagicMock, patch

import pytest

from backend import llm
from backend.errors import CredentialMissing, EmptyResponse, MalformedJSON, MissingRequiredField, TransportError
from backend.gateway import analyze
from backend.prompt import SYSTEM_PROMPT, build_user_prompt
from backend.schemas import parse_input

from conftest import StubGenerator


@pytest.fixture
def fraud_input(sample_text):
    return parse_input(sample_text)


def test_analyze_returns_validated_output(api_key, fraud_input, analysis_text):
    generator = StubGenerator(analysis_text)

    analysis = analyze(fraud_input, generator)

    assert analysis.overall_assessment.risk_level == "High"
    assert [f.tx_id for f in analysis.transaction_findings] == ["TX-99101", "TX-99102"]
    assert len(generator.calls) == 1


def test_request_uses_system_prompt_and_pretty_printed_input(api_key, fraud_input, analysis_text):
    generator = StubGenerator(analysis_text)

    analyze(fraud_input, generator)

    system_prompt, prompt = generator.calls[0]
    assert system_prompt == SYSTEM_PROMPT
    assert prompt == (
        "Analyze the following SME transaction data for fraud, AML risks, and financial distress.\n\n"
        "Input Data:\n" + json.dumps(fraud_input.to_dict(), indent=2, ensure_ascii=False)
    )
    assert prompt == build_user_prompt(fraud_input)


def test_missing_credential_never_calls_the_model(no_api_key, fraud_input, analysis_text):
    generator = StubGenerator(analysis_text)

    with patch("backend.gateway.MistralGenerator") as mistral:
        with pytest.raises(CredentialMissing):
            analyze(fraud_input, generator)
        with pytest.raises(CredentialMissing):
            analyze(fraud_input)

    assert generator.calls == []
    mistral.assert_not_called()


def test_not_json_reply(api_key, fraud_input):
    before = fraud_input.to_json()

    with pytest.raises(MalformedJSON):
        analyze(fraud_input, StubGenerator("not json"))

    assert fraud_input.to_json() == before


@pytest.mark.parametrize("text", [None, ""])
def test_empty_reply(api_key, fraud_input, text):
    with pytest.raises(EmptyResponse):
        analyze(fraud_input, StubGenerator(text))


def test_reply_missing_a_section(api_key, fraud_input, analysis_payload):
    del analysis_payload["explainability"]
    with pytest.raises(MissingRequiredField) as exc:
        analyze(fraud_input, StubGenerator(json.dumps(analysis_payload)))
    assert exc.value.name == "explainability"


def test_transport_failure_is_wrapped_and_not_retried(api_key, fraud_input):
    cause = ConnectionError("connection reset")
    generator = StubGenerator(exc=cause)

    with pytest.raises(TransportError) as exc:
        analyze(fraud_input, generator)

    assert exc.value.cause is cause
    assert "connection reset" in str(exc.value)
    assert len(generator.calls) == 1


def test_transport_failure_is_logged(api_key, fraud_input, caplog):
    with caplog.at_level("ERROR", logger="backend.gateway"):
        with pytest.raises(TransportError):
            analyze(fraud_input, StubGenerator(exc=ConnectionError("connection reset")))

    record = caplog.records[-1]
    assert record.msg == "Inference call failed: %s"
    assert "connection reset" in record.getMessage()


def test_repeated_calls_are_independent(api_key, fraud_input, analysis_text):
    generator = StubGenerator(analysis_text)

    analyze(fraud_input, generator)
    analyze(fraud_input, generator)

    assert len(generator.calls) == 2


class TestMistralGenerator:
    def _client(self, content):
        client = MagicMock()
        client.chat.complete.return_value.choices = [MagicMock(message=MagicMock(content=content))]
        return client

    def test_requests_json_mode(self, api_key, monkeypatch):
        client = self._client('{"ok": true}')
        monkeypatch.setattr(llm, "_mistral_client", client)

        text = llm.MistralGenerator(model="mistral-small-latest").generate("system", "user")

        assert text == '{"ok": true}'
        kwargs = client.chat.complete.call_args.kwargs
        assert kwargs["model"] == "mistral-small-latest"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]

    def test_no_choices(self, api_key, monkeypatch):
        client = MagicMock()
        client.chat.complete.return_value.choices = []
        monkeypatch.setattr(llm, "_mistral_client", client)

        assert llm.MistralGenerator().generate("system", "user") is None

    def test_client_needs_a_key(self, no_api_key, monkeypatch):
        monkeypatch.setattr(llm, "_mistral_client", None)
        with pytest.raises(CredentialMissing):
            llm.get_mistral_client()

    def test_sdk_error_becomes_transport_error(self, api_key, monkeypatch, fraud_input):
        client = MagicMock()
        client.chat.complete.side_effect = RuntimeError("503 Service Unavailable")
        monkeypatch.setattr(llm, "_mistral_client", client)

        with pytest.raises(TransportError) as exc:
            analyze(fraud_input, llm.MistralGenerator())

        assert isinstance(exc.value.cause, RuntimeError)
