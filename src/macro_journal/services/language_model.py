"""Interface to the external language model."""

import json
from typing import Protocol


class LanguageModelClient(Protocol):
    """Interface for one-shot JSON completions."""

    async def complete_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        instructions: str,
        text: str,
        temperature: float,
        max_output_tokens: int | None,
        store: bool,
    ) -> str:
        """Return the raw text of a JSON-mode completion.

        Raises UpstreamUnavailableError on transport failures.
        """


def load_json_object(raw: str) -> dict[str, object] | None:
    """Parse model output as a JSON object, returning None when it is not one."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload
