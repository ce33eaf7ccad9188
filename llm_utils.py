"""Thin wrapper around the Groq chat endpoint used by the roast route."""
from typing import Any
from config import async_client, GROQ_MODEL


async def single_llm_call(
    messages: list[dict],
    model: str = GROQ_MODEL,
    max_tokens: int = 350,
    temperature: float = 0.7,
    **kwargs
) -> Any:
    # Defaults keep a roast short and a little unhinged
    return await async_client.chat.completions.create(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        **kwargs
    )
