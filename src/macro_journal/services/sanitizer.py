"""Input sanitizer applied before any language model call.

Rejections come from a rule table so the rule set can be tested and
extended without touching the control flow in ``InputSanitizer.sanitize``.
"""

import logging
import re
from dataclasses import dataclass

from macro_journal.domain.guard import (
    SanitizationVerdict,
    UserReason,
    too_long_reason,
)


@dataclass(frozen=True)
class SanitizationRule:
    """Named pattern that rejects input on match."""

    name: str
    pattern: re.Pattern[str]
    reason: str = UserReason.SUSPICIOUS


def _rule(name: str, pattern: str, flags: int = 0) -> SanitizationRule:
    return SanitizationRule(name=name, pattern=re.compile(pattern, re.IGNORECASE | flags))


INJECTION_RULES: tuple[SanitizationRule, ...] = (
    # instruction override
    _rule(
        "ignore_previous",
        r"ignore\s+(previous|above|earlier|prior)\s+(instruction|prompt|command|rule)",
    ),
    _rule("forget_everything", r"forget\s+(everything|all|previous|your)"),
    _rule("new_instruction", r"new\s+(instruction|prompt|command|rule|task)"),
    _rule("system_role_marker", r"system\s*:"),
    _rule("assistant_role_marker", r"assistant\s*:"),
    # role reassignment
    _rule("you_are_now", r"you\s+are\s+now"),
    _rule("act_as", r"act\s+as\s+(a|an)\b"),
    _rule("pretend", r"pretend\s+(you|to)\s+(are|be)"),
    _rule("role_marker", r"role\s*:"),
    # prompt leakage
    _rule("print_prompt", r"print\s+(your|the)\s+(prompt|instruction|system)"),
    _rule("show_prompt", r"show\s+(me\s+)?(your|the)\s+(prompt|instruction)"),
    _rule("repeat_above", r"repeat\s+(the\s+)?(text|instructions|prompt)\s+above"),
    _rule("ask_rules", r"what\s+(are|is)\s+your\s+(instruction|prompt|rule)"),
    # markup and script
    _rule("script_tag", r"<script[^>]*>"),
    _rule("iframe_tag", r"<iframe[^>]*>"),
    _rule("javascript_url", r"javascript\s*:"),
    _rule("event_handler", r"on(load|error|click|mouse)\s*="),
    # sql
    _rule("sql_ddl", r";\s*(drop|delete|update|insert|create)\s+(table|database)"),
    _rule("sql_union", r"union\s+select"),
    _rule("sql_tautology", r"'\s*or\s+'1'\s*=\s*'1"),
    # shell
    _rule("shell_pipe", r"\|\s*(rm|del|format|shutdown)"),
    _rule("backticks", r"`.*`", re.DOTALL),
    _rule("command_substitution", r"\$\(.*\)", re.DOTALL),
)

BANNED_PHRASES: tuple[str, ...] = (
    "ignore instructions",
    "disregard prompt",
    "forget your role",
    "new task:",
    "your instructions are",
    "override",
    "bypass",
    "jailbreak",
    "system message",
    "admin command",
    "root access",
    "sudo ",
    "developer mode",
    "god mode",
)

_SPECIAL_RUN = re.compile(r"[^\w\s]{5,}")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


@dataclass
class InputSanitizer:
    """Pure text filter that rejects or normalizes raw meal descriptions."""

    max_length: int = 500
    max_newlines: int = 5
    rules: tuple[SanitizationRule, ...] = INJECTION_RULES
    banned_phrases: tuple[str, ...] = BANNED_PHRASES

    def sanitize(self, text: object) -> SanitizationVerdict:
        """Return a verdict for raw user input."""
        if not isinstance(text, str) or not text:
            return _reject(UserReason.EMPTY, "missing")

        trimmed = text.strip()
        if not trimmed:
            return _reject(UserReason.EMPTY, "empty")
        if len(trimmed) > self.max_length:
            return _reject(too_long_reason(self.max_length), "too_long")
        if trimmed.count("\n") > self.max_newlines:
            return _reject(UserReason.SUSPICIOUS, "too_many_newlines")

        for rule in self.rules:
            if rule.pattern.search(trimmed):
                return _reject(rule.reason, rule.name)

        # Phrase matching runs on normalized whitespace so that a second pass
        # over accepted output sees the same text.
        lowered = _WHITESPACE.sub(" ", trimmed.lower())
        for phrase in self.banned_phrases:
            if phrase in lowered:
                return _reject(UserReason.SUSPICIOUS, f"banned:{phrase.strip()}")

        if _SPECIAL_RUN.search(trimmed):
            return _reject(UserReason.SUSPICIOUS, "special_characters")
        if _CONTROL_CHARS.search(trimmed):
            return _reject(UserReason.SUSPICIOUS, "control_characters")

        cleaned = _CONTROL_CHARS.sub("", trimmed)
        normalized = _WHITESPACE.sub(" ", cleaned).strip()
        return SanitizationVerdict(sanitized_text=normalized, rejected=False)


def sanitize(text: object) -> SanitizationVerdict:
    """Sanitize input with the default limits and rule table."""
    return _DEFAULT_SANITIZER.sanitize(text)


def _reject(reason: str, rule: str) -> SanitizationVerdict:
    _logger.info("Sanitizer rejected input: rule=%s", rule)
    return SanitizationVerdict(
        sanitized_text="", rejected=True, reason=str(reason), rule=rule
    )


_DEFAULT_SANITIZER = InputSanitizer()
