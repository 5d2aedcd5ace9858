"""Reply and follow-up question generation."""

from anthropic import AsyncAnthropic

from neurocom.core.errors import GenerationError
from neurocom.core.llm import complete, strip_list_marker
from neurocom.core.logging import get_logger
from neurocom.core.prompts import FALLBACK_REPLY, build_chat_prompt, build_followups_prompt

logger = get_logger(__name__)

MAX_FOLLOWUPS = 2
MAX_FOLLOWUP_CHARS = 140


class ResponseGenerator:
    """Produces the reply for one chat message from context and recent history."""

    def __init__(self, client: AsyncAnthropic, model: str, max_tokens: int = 1024):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def generate(self, message: str, context: str, history: list[dict]) -> str:
        """
        Generate a reply.

        Args:
            message: Current user message
            context: Retrieved context text (may be empty)
            history: Recent turns, oldest-first

        Returns:
            Reply text; the fallback sentence when the model returns nothing

        Raises:
            GenerationError: If the completion call fails
        """
        prompt = build_chat_prompt(message=message, context=context, history=history)

        try:
            text = await complete(
                self.client,
                model=self.model,
                prompt=prompt,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Reply generation failed: {e}", exc_info=True)
            raise GenerationError(f"Completion failed: {e}") from e

        if not text:
            logger.warning("Model returned an empty reply; using fallback sentence")
            return FALLBACK_REPLY
        return text


class FollowupGenerator:
    """Best-effort follow-up questions. Never raises."""

    def __init__(self, client: AsyncAnthropic, model: str, max_tokens: int = 200):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def followups(self, answer_text: str, message: str) -> list[str]:
        """Return at most two questions of at most 140 characters each."""
        try:
            raw = await complete(
                self.client,
                model=self.model,
                prompt=build_followups_prompt(answer_text, message),
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.warning(f"Follow-up generation failed (non-fatal): {e}")
            return []

        return parse_followups(raw)


def parse_followups(raw: str) -> list[str]:
    """Split model output into unique questions, keeping the first two."""
    questions: list[str] = []
    for line in (raw or "").splitlines():
        question = strip_list_marker(line)
        if question and question not in questions:
            questions.append(question)
    return [q[:MAX_FOLLOWUP_CHARS] for q in questions[:MAX_FOLLOWUPS]]
