"""Text rewriting with ordered pattern/replacement rules."""

from __future__ import annotations

import logging
import re
import unicodedata

from mms_extractor.core.models import RuleSet

logger = logging.getLogger(__name__)


class TextTransformer:
    """Applies a RuleSet's transform rules to text content."""

    def __init__(self, rules: RuleSet) -> None:
        self._rules = rules

    def transform(self, mime_type: str, text: str) -> tuple[str, str]:
        """Run every transform rule for ``mime_type`` over ``text``, in order.

        Returns the type and the rewritten text; text is returned untouched
        when no rules exist for the type. A rule that fails to apply leaves
        the running text as it was.
        """
        steps = self._rules.transform_rules(mime_type)
        if not steps:
            return mime_type, text

        result = self.normalize(text)
        for step in steps:
            try:
                result = step.rule.sub(step.replacement, result)
            except (re.error, IndexError) as e:
                logger.debug("Transform rule for %s skipped: %s", mime_type, e)
        return mime_type, result

    @staticmethod
    def normalize(text: str | bytes) -> str:
        """Best effort conversion to NFC unicode text."""
        try:
            if isinstance(text, bytes):
                try:
                    text = text.decode("utf-8")
                except UnicodeDecodeError:
                    text = text.decode("latin-1")
            return unicodedata.normalize("NFC", text)
        except (UnicodeError, TypeError) as e:
            logger.debug("Charset normalization failed: %s", e)
            return text if isinstance(text, str) else text.decode("utf-8", errors="replace")
