import logging
from typing import Optional

from backend import config
from backend.errors import FraudGuardError, TransportError
from backend.join import orphan_findings
from backend.llm import MistralGenerator, TextGenerator
from backend.prompt import SYSTEM_PROMPT, build_user_prompt
from backend.schemas import FraudAnalysisOutput, FraudInput, parse_output

logger = logging.getLogger(__name__)


def analyze(fraud_input: FraudInput, generator: Optional[TextGenerator] = None) -> FraudAnalysisOutput:
    """
    Run one single-shot analysis round-trip.

    Raises CredentialMissing before any network I/O when no key is configured,
    TransportError when the endpoint call fails, and whatever parse_output raises
    when the reply breaks the response contract. No retries, no caching.
    """
    config.require_api_key()
    if generator is None:
        generator = MistralGenerator()

    user_prompt = build_user_prompt(fraud_input)
    logger.info(
        "Analyzing %s (%d transactions) with %s",
        fraud_input.sme_profile.business_id or "unknown business",
        len(fraud_input.recent_transactions),
        getattr(generator, "model", type(generator).__name__),
    )

    try:
        text = generator.generate(SYSTEM_PROMPT, user_prompt)
    except FraudGuardError:
        raise
    except Exception as e:
        logger.error("Inference call failed: %s", e)
        raise TransportError(e) from e

    try:
        analysis = parse_output(text)
    except FraudGuardError as e:
        logger.error("Rejected model response: %s", e)
        raise

    orphans = orphan_findings(fraud_input.recent_transactions, analysis.transaction_findings)
    if orphans:
        logger.warning("Model returned %d finding(s) for unknown tx_id: %s",
                       len(orphans), ", ".join(f.tx_id for f in orphans))
    logger.info(
        "Analysis done: overall=%s score=%s findings=%d",
        analysis.overall_assessment.risk_level,
        analysis.overall_assessment.overall_risk_score_0_to_100,
        len(analysis.transaction_findings),
    )
    return analysis
