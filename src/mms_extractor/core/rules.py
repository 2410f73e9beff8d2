"""Rule parsing: turn rule strings from YAML into LiteralRule / PatternRule values.

Rule strings that open with ``/`` are regular expression literals of the form
``/source/flags``. Supported flags are ``i`` (ignore case), ``m`` (dot matches
newline) and ``x`` (verbose). ``^`` and ``$`` always anchor at line boundaries;
``\\A`` and ``\\z`` anchor the whole string. Everything else is a literal.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from mms_extractor.core.exceptions import ConfigError
from mms_extractor.core.models import (
    LiteralRule,
    NumberRule,
    PatternRule,
    Rule,
    RuleSet,
    TransformRule,
)

logger = logging.getLogger(__name__)

DELIMITER = "/"

_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.DOTALL,
    "x": re.VERBOSE,
}

# Escapes whose meaning differs from Python's re module.
_ESCAPES = {
    "z": r"\Z",
    "Z": r"(?=\n?\Z)",
    "h": "[0-9a-fA-F]",
    "H": "[^0-9a-fA-F]",
}


def is_pattern(text: str) -> bool:
    return text.startswith(DELIMITER)


def parse_rule(text: str) -> Rule:
    """Parse a rule string once, at load time."""
    if not is_pattern(text):
        return LiteralRule(text)
    try:
        return PatternRule(text, compile_pattern(text))
    except (re.error, ValueError) as e:
        logger.debug("Unusable pattern rule %r: %s", text, e)
        return PatternRule(text, None)


def compile_pattern(text: str) -> re.Pattern[str]:
    """Compile a ``/source/flags`` literal.

    Raises:
        ValueError: If the literal is not delimited or carries unknown flags.
        re.error: If the source is not a valid expression.
    """
    end = text.rfind(DELIMITER)
    if not is_pattern(text) or end <= 0:
        raise ValueError(f"not a delimited pattern: {text!r}")

    flags = re.MULTILINE
    for flag in text[end + 1 :]:
        if flag not in _FLAGS:
            raise ValueError(f"unknown pattern flag {flag!r} in {text!r}")
        flags |= _FLAGS[flag]

    return re.compile(_translate(text[1:end]), flags)


def _translate(source: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(source):
        char = source[i]
        if char == "\\" and i + 1 < len(source):
            escaped = source[i + 1]
            out.append(_ESCAPES.get(escaped, char + escaped))
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def translate_replacement(replacement: str) -> str:
    r"""Rewrite ``\0`` and ``\k<name>`` group references for re.sub."""
    replacement = re.sub(r"(?<!\\)\\0", r"\\g<0>", replacement)
    return re.sub(r"\\k<(\w+)>", r"\\g<\1>", replacement)


def rule_set_from_mapping(data: Any) -> RuleSet:
    """Build a RuleSet from a decoded rule document.

    Entries of the wrong shape are skipped rather than rejected.
    """
    if data is None:
        return RuleSet()
    if not isinstance(data, dict):
        raise ConfigError(f"rule document must be a mapping, got {type(data).__name__}")

    ignore: dict[str, tuple[Rule, ...]] = {}
    for mime_type, rules in _typed_lists(data.get("ignore")):
        ignore[mime_type] = tuple(parse_rule(r) for r in rules if isinstance(r, str))

    transform: dict[str, tuple[TransformRule, ...]] = {}
    for mime_type, pairs in _typed_lists(data.get("transform")):
        steps = []
        for pair in pairs:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                logger.debug("Skipping transform entry for %s: %r", mime_type, pair)
                continue
            pattern, replacement = pair
            steps.append(
                TransformRule(parse_rule(str(pattern)), translate_replacement(str(replacement)))
            )
        transform[mime_type] = tuple(steps)

    return RuleSet(ignore=ignore, transform=transform, number=_number_rule(data.get("number")))


def _typed_lists(section: Any) -> list[tuple[str, list[Any]]]:
    if not isinstance(section, dict):
        return []
    return [
        (str(mime_type).lower(), values)
        for mime_type, values in section.items()
        if isinstance(values, list)
    ]


def _number_rule(entry: Any) -> NumberRule | None:
    if not isinstance(entry, (list, tuple)) or len(entry) != 3:
        return None
    header, pattern, replacement = (str(v) for v in entry)
    return NumberRule(header, parse_rule(pattern), translate_replacement(replacement))
