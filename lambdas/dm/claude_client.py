"""Claude API narrator with prompt caching."""

import anthropic
from aws_lambda_powertools import Logger

from shared.exceptions import QuotaExceededError

logger = Logger(child=True)


class ClaudeNarrator:
    """Narrator backed by the Claude API."""

    MODEL = "claude-3-haiku-20240307"
    MAX_TOKENS = 1024

    def __init__(self, api_key: str, client: anthropic.Anthropic | None = None):
        """Initialize Claude narrator.

        Args:
            api_key: Anthropic API key
            client: Preconfigured client, mainly for tests
        """
        self.client = client or anthropic.Anthropic(api_key=api_key)

    def send_action(self, system_prompt: str, context: str, action: str) -> str:
        """Send a player action to Claude and return the narrative.

        Uses prompt caching on system_prompt.

        Args:
            system_prompt: The narrator system prompt (cacheable)
            context: Dynamic context (character, scene)
            action: Player's action text

        Returns:
            Narrator response text

        Raises:
            QuotaExceededError: If the API rate limit was hit
        """
        try:
            response = self.client.messages.create(
                model=self.MODEL,
                max_tokens=self.MAX_TOKENS,
                system=[
                    {
                        "type": "text",
                        "text": system_prompt,
                        "cache_control": {"type": "ephemeral"},
                    }
                ],
                messages=[
                    {
                        "role": "user",
                        "content": f"{context}\n\n[Player Action]: {action}",
                    }
                ],
            )
        except anthropic.RateLimitError as e:
            logger.warning("Claude rate limit hit", extra={"error": str(e)})
            raise QuotaExceededError("Narrator API rate limit exceeded") from e

        usage = response.usage
        logger.info(
            "Claude API usage",
            extra={
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "cache_creation_input_tokens": getattr(usage, "cache_creation_input_tokens", 0),
                "cache_read_input_tokens": getattr(usage, "cache_read_input_tokens", 0),
            },
        )

        return response.content[0].text
