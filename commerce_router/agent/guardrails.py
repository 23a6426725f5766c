"""Output guardrails for responder text, driven by config rules such as "max 300 words" or "strip urls"."""
import re

_URL = re.compile(r"https?://\S+")
_NUMBER = re.compile(r"\d+")


def _limit(rule: str) -> int | None:
    m = _NUMBER.search(rule)
    return int(m.group()) if m else None


def truncate_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + "..."


def apply_guardrails(text: str, guardrails: list[str]) -> str:
    """Apply guardrail rules in order. Unrecognised rules are ignored."""
    if not text:
        return text
    for rule in guardrails or []:
        rule_lower = rule.lower()
        if "url" in rule_lower and ("strip" in rule_lower or "no " in rule_lower):
            text = _URL.sub("", text)
        elif "max" in rule_lower and "word" in rule_lower:
            limit = _limit(rule_lower)
            if limit:
                text = truncate_words(text, limit)
        elif "max" in rule_lower and ("char" in rule_lower or "length" in rule_lower):
            limit = _limit(rule_lower)
            if limit and len(text) > limit:
                text = text[:limit].rstrip() + "..."
    return text
