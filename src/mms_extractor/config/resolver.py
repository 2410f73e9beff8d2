"""Carrier config resolution: envelope domain → alias → carrier rules merged over defaults."""

from __future__ import annotations

import logging
import re
from email.message import Message
from email.utils import getaddresses
from pathlib import Path
from typing import Any

import yaml

from mms_extractor.config.settings import MmsExtractorSettings
from mms_extractor.core.exceptions import ConfigError
from mms_extractor.core.models import RuleSet
from mms_extractor.core.rules import rule_set_from_mapping

logger = logging.getLogger(__name__)

_RETURN_PATH = re.compile(r"^<.+@([^@]+)>$")


def carrier_domain(message: Message, default: str) -> str:
    """Domain of the carrier gateway that sent ``message``.

    Taken from a ``<user@domain>`` Return-Path, else from the first From
    address, else ``default``.
    """
    return_path = message.get("return-path")
    if return_path is not None:
        match = _RETURN_PATH.match(str(return_path).strip())
        if match:
            return match.group(1).lower()

    address = first_from_address(message)
    if "@" in address:
        return address.rsplit("@", 1)[1].lower()
    return default


def first_from_address(message: Message) -> str:
    addresses = getaddresses([str(v) for v in message.get_all("from", [])])
    for _, address in addresses:
        if address:
            return address
    return ""


def load_yaml(path: Path) -> Any:
    """Read and decode a YAML file.

    Raises:
        ConfigError: If the file is missing, unreadable or not valid YAML.
    """
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {path}: {e}") from e


def load_rule_file(path: Path) -> RuleSet:
    """Load one rule file. Raises ConfigError when it can't be used."""
    return rule_set_from_mapping(load_yaml(path))


class ConfigResolver:
    """Resolves the effective RuleSet for a carrier.

    Every configuration problem degrades to an empty fragment; nothing is
    raised to the caller.
    """

    def __init__(self, settings: MmsExtractorSettings) -> None:
        self._settings = settings
        self._aliases: dict[str, str] | None = None

    @property
    def aliases(self) -> dict[str, str]:
        if self._aliases is None:
            self._aliases = self._load_aliases()
        return self._aliases

    def canonical_carrier(self, carrier: str) -> str:
        return self.aliases.get(carrier, carrier)

    def config_path(self, carrier: str) -> Path:
        return self._settings.conf_dir / f"{self.canonical_carrier(carrier)}.yml"

    def default_rules(self) -> RuleSet:
        return self._load_fragment(self._settings.conf_dir / self._settings.default_config)

    def carrier_rules(self, carrier: str) -> RuleSet:
        return self._load_fragment(self.config_path(carrier))

    def resolve(self, carrier: str) -> RuleSet:
        """Default rules with the carrier's rules layered on top."""
        rules = self.default_rules().merge(self.carrier_rules(carrier))
        logger.debug(
            "Resolved rules for %s (%s): %d ignore types, %d transform types",
            carrier,
            self.canonical_carrier(carrier),
            len(rules.ignore),
            len(rules.transform),
        )
        return rules

    def _load_aliases(self) -> dict[str, str]:
        path = self._settings.conf_dir / self._settings.aliases_config
        try:
            data = load_yaml(path)
        except ConfigError as e:
            logger.debug("No aliases loaded: %s", e)
            return {}
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Ignoring alias file %s: not a mapping", path)
            return {}
        return {str(k).lower(): str(v).lower() for k, v in data.items() if v is not None}

    @staticmethod
    def _load_fragment(path: Path) -> RuleSet:
        try:
            return load_rule_file(path)
        except ConfigError as e:
            if path.exists():
                logger.warning("Using empty rules: %s", e)
            else:
                logger.debug("No rules at %s", path)
            return RuleSet()
