"""Rewrites raw spoken transcripts into written journal text."""

import logging

from app.config import get_settings
from app.services.upstream import call_with_retry, get_openai_client, translate_upstream_error

logger = logging.getLogger("voice_journal")

REPHRASE_PROMPT = """You are a helpful assistant that transforms spoken journal entries into polished first-person summaries.

Your task is to:
- Write ENTIRELY in first-person perspective (I, me, my)
- Remove ALL filler words and speech disfluencies (um, uh, like, you know)
- Eliminate repetitions and redundant expressions
- Fix grammar while keeping the speaker's own voice
- Preserve key emotions, insights and important details
- Structure thoughts coherently and logically
- Keep the personal, reflective tone
- Aim for 3-5 sentences that capture the essence

Transform the raw transcript into what the person would write if they were journaling directly."""

SUMMARY_PROMPT = """You summarize spoken journal entries.

Write a concise summary of 2-3 sentences that captures the main events, feelings and
takeaways of the entry. Leave out filler words and repetitions."""

PROMPTS = {
    "rephrase": (REPHRASE_PROMPT, "Transform this spoken journal entry into a first-person written summary:\n\n{text}"),
    "summary": (SUMMARY_PROMPT, "Summarize this spoken journal entry:\n\n{text}"),
}


def build_messages(text: str, style: str = "rephrase") -> list[dict[str, str]]:
    system, user_template = PROMPTS.get(style, PROMPTS["rephrase"])
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user_template.format(text=text)},
    ]


class RewriteService:
    """Calls the chat model. An empty completion is returned as ``""``, not raised."""

    async def rewrite(self, text: str) -> str:
        settings = get_settings()
        try:
            client = get_openai_client()
            response = await call_with_retry(
                client.chat.completions.create,
                model=settings.OPENAI_REWRITE_MODEL,
                messages=build_messages(text, settings.REWRITE_STYLE),
                max_tokens=settings.REWRITE_MAX_TOKENS,
                temperature=0.3,
            )
        except Exception as e:
            logger.error("Rewrite request failed: %s", e)
            raise translate_upstream_error(e) from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return (content or "").strip()


_rewrite_service: RewriteService | None = None


def get_rewrite_service() -> RewriteService:
    """Get singleton rewrite service instance."""
    global _rewrite_service
    if _rewrite_service is None:
        _rewrite_service = RewriteService()
    return _rewrite_service
