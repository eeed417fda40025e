import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from backend import config
from backend.errors import CredentialMissing, FraudGuardError
from backend.gateway import analyze as run_analysis
from backend.prompt import SAMPLE_PAYLOAD
from backend.schemas import parse_input, summarize_input

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

if not config.has_api_key():
    logger.warning("MISTRAL_API_KEY is not set; /analyze will be refused until it is configured.")

app = FastAPI(title="FraudGuard AI", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # demo only
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PayloadIn(BaseModel):
    payload: str


def _parse_payload(text: str):
    try:
        return parse_input(text)
    except FraudGuardError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())


@app.get("/health")
def health():
    return {"status": "ok", "model": config.MODEL, "has_api_key": config.has_api_key()}


@app.get("/ping")
def ping():
    return {"pong": True}


@app.get("/sample")
def sample():
    return SAMPLE_PAYLOAD


@app.post("/validate")
def validate(body: PayloadIn):
    fraud_input = _parse_payload(body.payload)
    return {"input": fraud_input.to_dict(), "summary": summarize_input(fraud_input)}


@app.post("/analyze")
def analyze(body: PayloadIn):
    fraud_input = _parse_payload(body.payload)
    try:
        result = run_analysis(fraud_input)
    except CredentialMissing as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    except FraudGuardError as e:
        raise HTTPException(status_code=502, detail=e.to_dict())

    return {
        "input": fraud_input.to_dict(),
        "analysis": result.model_dump(mode="json"),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
