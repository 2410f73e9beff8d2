"""Per-part media extraction and the carrier → processor registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from mms_extractor.core.filenames import type_from_filename
from mms_extractor.core.models import RuleSet
from mms_extractor.core.parts import Part, body_text, main_type
from mms_extractor.core.transformer import TextTransformer

logger = logging.getLogger(__name__)

SMIL_TYPE = "application/smil"
OCTET_STREAM = "application/octet-stream"

Extracted = tuple[str | None, str | bytes | None]


class PartProcessor(Protocol):
    """Turns a surviving leaf part into an output type and content."""

    def extract(self, part: Part, filename: str) -> Extracted: ...


class MediaProcessor:
    """Default extraction used for every carrier without a custom processor."""

    def __init__(self, rules: RuleSet) -> None:
        self._rules = rules
        self._transformer = TextTransformer(rules)

    @property
    def transformer(self) -> TextTransformer:
        return self._transformer

    def extract(self, part: Part, filename: str) -> Extracted:
        """Decide the output type and content for ``part``.

        Text and SMIL parts are run through the text transforms. Octet-stream
        parts get a type guessed from the filename extension, None if the
        extension is unknown. Everything else passes through unchanged.
        """
        mime_type = part.mime_type()
        if main_type(mime_type) == "text" or mime_type == SMIL_TYPE:
            return self._transformer.transform(mime_type, body_text(part))
        if mime_type == OCTET_STREAM:
            guessed = type_from_filename(filename)
            if guessed is None:
                logger.debug("No type for octet-stream part %s", filename)
            return guessed, part.body()
        return mime_type, part.body()


ProcessorFactory = Callable[[RuleSet], PartProcessor]


class ProcessorRegistry:
    """Maps canonical carrier ids to processor factories, with a default."""

    def __init__(self, default: ProcessorFactory = MediaProcessor) -> None:
        self._default = default
        self._factories: dict[str, ProcessorFactory] = {}

    def register(self, carrier: str, factory: ProcessorFactory) -> None:
        self._factories[carrier.lower()] = factory

    def create(self, carrier: str, rules: RuleSet) -> PartProcessor:
        factory = self._factories.get(carrier.lower(), self._default)
        return factory(rules)


default_registry = ProcessorRegistry()
