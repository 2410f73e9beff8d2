"""Carrier noise detection: decides which leaf parts to drop."""

from __future__ import annotations

import logging

from mms_extractor.core.filenames import resolve_filename
from mms_extractor.core.models import LiteralRule, PatternRule, RuleSet
from mms_extractor.core.parts import Part, body_text

logger = logging.getLogger(__name__)


def should_ignore(part: Part, rules: RuleSet, filename: str | None = None) -> bool:
    """True if ``part`` is carrier advertising or empty.

    Checks short-circuit in this order: filename equals a literal rule,
    filename matches a pattern rule, body matches a pattern rule, body is
    empty once stripped.
    """
    mime_type = part.mime_type()
    if filename is None:
        filename = resolve_filename(part)
    ignores = rules.ignore_rules(mime_type)
    patterns = [r for r in ignores if isinstance(r, PatternRule)]

    for rule in ignores:
        if isinstance(rule, LiteralRule) and rule.text == filename:
            logger.debug("Ignoring %s %s: filename rule", mime_type, filename)
            return True

    for rule in patterns:
        if rule.search(filename):
            logger.debug("Ignoring %s %s: filename matches %s", mime_type, filename, rule.source)
            return True

    text = body_text(part)
    for rule in patterns:
        if rule.search(text):
            logger.debug("Ignoring %s %s: body matches %s", mime_type, filename, rule.source)
            return True

    if not text:
        logger.debug("Ignoring %s %s: empty body", mime_type, filename)
        return True
    return False
