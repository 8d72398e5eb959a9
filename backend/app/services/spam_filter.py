"""
AI spam classification for contact form submissions.

Asks Claude for a JSON verdict on the submission content. The honeypot
override is NOT applied here; the pipeline forces honeypot submissions to
spam and does not call the classifier for them.
"""

import json
import os
from typing import Optional

import anthropic

from app.models.contact import SpamVerdict

MODEL = "claude-haiku-4-5"
MAX_TOKENS = 256

SPAM_PROMPT = """\
You are a spam filter for a website contact form. Decide whether the submission
below is spam (advertising, SEO offers, phishing, gibberish, automated probing)
or a genuine message from a person.

If Honeypot Filled is true, the submission must always be marked as spam.

Origin: {origin}
Honeypot Filled: {honeypot_filled}
Content:
{content}

Respond with ONLY valid JSON matching this schema:
{"is_spam": boolean, "reason": string}
Explain your decision briefly in the reason field.
"""


def _strip_code_fences(raw_text: str) -> str:
    text = raw_text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = [ln for ln in lines if not ln.strip().startswith("```")]
        text = "\n".join(lines).strip()
    return text


def parse_verdict(raw_text: str) -> SpamVerdict:
    """
    Parse the model's reply into a SpamVerdict.

    Raises:
        ValueError: if the reply is not a JSON object with a boolean is_spam.
    """
    parsed = json.loads(_strip_code_fences(raw_text))
    if not isinstance(parsed, dict) or not isinstance(parsed.get("is_spam"), bool):
        raise ValueError(f"Malformed spam verdict: {raw_text[:200]!r}")
    return SpamVerdict(is_spam=parsed["is_spam"], reason=str(parsed.get("reason") or ""))


class AnthropicSpamClassifier:
    def __init__(self, api_key: Optional[str] = None, model: str = MODEL, timeout: Optional[float] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    async def classify(self, origin: str, content: str, honeypot_filled: bool) -> SpamVerdict:
        """
        Classify one submission.

        Raises whatever the API client raises, plus ValueError for an
        unparseable reply. The caller decides whether that is fatal.
        """
        api_key = self.api_key or os.getenv("ANTHROPIC_API_KEY")
        client = anthropic.AsyncAnthropic(api_key=api_key)

        prompt = (
            SPAM_PROMPT.replace("{origin}", origin)
            .replace("{honeypot_filled}", "true" if honeypot_filled else "false")
            .replace("{content}", content)
        )

        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        response = await client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )

        return parse_verdict(response.content[0].text)
