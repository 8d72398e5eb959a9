"""
Tag stripping for values embedded in outbound emails and log lines.

This is NOT an HTML sanitizer. It removes angle-bracket spans: a "<", then
everything up to and including the next ">", or to the end of the text when
no ">" follows. The output never contains "<", so stripping twice is the same
as stripping once.
"""

import re

_TAG_PATTERN = re.compile(r"<[^>]*>?")


def strip_tags(text: str) -> str:
    if not text:
        return ""
    return _TAG_PATTERN.sub("", text)
