"""Text-generation seam. Anything with a ``generate(system_prompt, prompt)`` method can stand in for Mistral."""

from typing import Optional, Protocol

from backend import config

_mistral_client = None


class TextGenerator(Protocol):
    def generate(self, system_prompt: str, prompt: str) -> Optional[str]:
        ...


def get_mistral_client():
    global _mistral_client
    if _mistral_client is None:
        api_key = config.require_api_key()
        from mistralai import Mistral  # lazy import
        _mistral_client = Mistral(api_key=api_key)
    return _mistral_client


class MistralGenerator:
    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None):
        self.model = model or config.MODEL
        self.temperature = config.TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.MAX_TOKENS

    def generate(self, system_prompt: str, prompt: str) -> Optional[str]:
        client = get_mistral_client()
        resp = client.chat.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if resp is None or not resp.choices:
            return None
        content = resp.choices[0].message.content
        if isinstance(content, list):
            # chunked content: keep the text parts only
            content = "".join(getattr(chunk, "text", "") or "" for chunk in content)
        return content
