"""
AI-generated acknowledgement shown to the sender after a submission.

The pipeline treats this as best-effort and substitutes FALLBACK_MESSAGE
on any failure.
"""

import os
from typing import Optional

import anthropic

MODEL = "claude-haiku-4-5"
MAX_TOKENS = 200

# Sent instead of the real message on the spam path, so the reply gives no
# hint that the submission was flagged.
SPAM_PLACEHOLDER = "spam"

FALLBACK_MESSAGE = (
    "Thank you for your message. We've received your submission and will get "
    "back to you shortly."
)

PERSONALIZE_PROMPT = """\
You are a friendly assistant. Write a personalized success message for someone
who has just submitted a contact form.

The message must be a single, warm, reassuring sentence. Briefly acknowledge
the main topic of their message without being too specific and without making
any promises. If the message gives no clear topic, thank them for getting in
touch.

Examples:
- About "pricing for a project": "Thank you for your inquiry about our pricing! We've received your message and will get back to you with the details shortly."
- A bug report about "the login page": "Thank you for reporting the issue with the login page. We'll look into it right away."
- A general question about "your services": "Thank you for your interest in our services! We've received your message and will be in touch soon."

Reply with the sentence only, no quotes and no preamble.

User's message:
{message}
"""


class AnthropicPersonalizer:
    def __init__(self, api_key: Optional[str] = None, model: str = MODEL, timeout: Optional[float] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    async def personalize(self, message: str) -> str:
        api_key = self.api_key or os.getenv("ANTHROPIC_API_KEY")
        client = anthropic.AsyncAnthropic(api_key=api_key)

        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        response = await client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": PERSONALIZE_PROMPT.replace("{message}", message)}],
            **kwargs,
        )

        text = response.content[0].text.strip().strip('"').strip()
        if not text:
            raise ValueError("Empty personalized message")
        return text
