"""Tests for carrier detection and rule resolution."""

from __future__ import annotations

from email.message import EmailMessage
from pathlib import Path

import pytest

from mms_extractor.config.resolver import (
    ConfigResolver,
    carrier_domain,
    first_from_address,
    load_rule_file,
    load_yaml,
)
from mms_extractor.config.settings import PACKAGE_CONF_DIR, MmsExtractorSettings
from mms_extractor.core.exceptions import ConfigError
from mms_extractor.core.models import LiteralRule, RuleSet


def _message(**headers: str) -> EmailMessage:
    msg = EmailMessage()
    for key, value in headers.items():
        msg[key.replace("_", "-")] = value
    return msg


class TestCarrierDomain:
    """carrier_domain() prefers Return-Path, then From, then the default."""

    def test_return_path_domain(self) -> None:
        msg = _message(Return_Path="<2065551212@mms.att.net>", From="x@other.com")
        assert carrier_domain(msg, "mms.media") == "mms.att.net"

    def test_return_path_with_whitespace(self) -> None:
        msg = _message(Return_Path="  <2065551212@mms.att.net>  ")
        assert carrier_domain(msg, "mms.media") == "mms.att.net"

    def test_unbracketed_return_path_falls_back_to_from(self) -> None:
        msg = _message(Return_Path="2065551212@mms.att.net", From="1@tmomail.net")
        assert carrier_domain(msg, "mms.media") == "tmomail.net"

    def test_from_domain(self) -> None:
        msg = _message(From='"Someone" <2065551212@vzwpix.com>')
        assert carrier_domain(msg, "mms.media") == "vzwpix.com"

    def test_domain_lowercased(self) -> None:
        msg = _message(From="2065551212@VZWPIX.COM")
        assert carrier_domain(msg, "mms.media") == "vzwpix.com"

    def test_default_when_no_addresses(self) -> None:
        assert carrier_domain(_message(Subject="hi"), "mms.media") == "mms.media"

    def test_first_from_address(self) -> None:
        msg = _message(From="a@one.com, b@two.com")
        assert first_from_address(msg) == "a@one.com"

    def test_first_from_address_missing(self) -> None:
        assert first_from_address(_message()) == ""


class TestLoadYaml:
    def test_missing_file_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_yaml(tmp_path / "nope.yml")

    def test_malformed_file_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("ignore: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_yaml(path)

    def test_load_rule_file(self, conf_dir: Path) -> None:
        rules = load_rule_file(conf_dir / "mms_media.yml")
        assert rules.ignore_rules("image/gif") == (LiteralRule("spacer.gif"),)


class TestConfigResolver:
    """ConfigResolver maps carriers through aliases and merges rule files."""

    def test_alias_resolves_to_canonical(self, settings: MmsExtractorSettings) -> None:
        resolver = ConfigResolver(settings)
        assert resolver.canonical_carrier("legacy.pix.example.com") == "pix.example.com"

    def test_unknown_carrier_passes_through(self, settings: MmsExtractorSettings) -> None:
        resolver = ConfigResolver(settings)
        assert resolver.canonical_carrier("unknown.net") == "unknown.net"

    def test_config_path(self, settings: MmsExtractorSettings, conf_dir: Path) -> None:
        resolver = ConfigResolver(settings)
        assert resolver.config_path("legacy.pix.example.com") == conf_dir / "pix.example.com.yml"

    def test_carrier_rules_merged_after_default(self, settings: MmsExtractorSettings) -> None:
        rules = ConfigResolver(settings).resolve("pix.example.com")
        assert rules.ignore_rules("image/jpeg") == (LiteralRule("masthead.jpg"),)
        gifs = rules.ignore_rules("image/gif")
        assert gifs[0] == LiteralRule("spacer.gif")
        assert len(gifs) == 2
        assert len(rules.transform_rules("text/plain")) == 1
        assert rules.number is not None

    def test_alias_gets_carrier_rules(self, settings: MmsExtractorSettings) -> None:
        resolver = ConfigResolver(settings)
        assert resolver.resolve("legacy.pix.example.com") == resolver.resolve("pix.example.com")

    def test_unconfigured_carrier_gets_default(self, settings: MmsExtractorSettings) -> None:
        resolver = ConfigResolver(settings)
        assert resolver.resolve("unknown.net") == resolver.default_rules()

    def test_malformed_carrier_file_degrades_to_default(
        self, settings: MmsExtractorSettings, conf_dir: Path
    ) -> None:
        (conf_dir / "broken.net.yml").write_text("ignore: {image/gif: [\n", encoding="utf-8")
        resolver = ConfigResolver(settings)
        assert resolver.resolve("broken.net") == resolver.default_rules()

    def test_carrier_file_with_list_root_degrades(
        self, settings: MmsExtractorSettings, conf_dir: Path
    ) -> None:
        (conf_dir / "odd.net.yml").write_text("- just\n- a list\n", encoding="utf-8")
        resolver = ConfigResolver(settings)
        assert resolver.resolve("odd.net") == resolver.default_rules()

    def test_missing_conf_dir_is_empty(self, tmp_path: Path) -> None:
        settings = MmsExtractorSettings(tmp_dir=tmp_path / "t", conf_dir=tmp_path / "absent")
        resolver = ConfigResolver(settings)
        assert resolver.aliases == {}
        assert resolver.resolve("anything.net") == RuleSet()

    def test_malformed_alias_file_is_empty(
        self, settings: MmsExtractorSettings, conf_dir: Path
    ) -> None:
        (conf_dir / "aliases.yml").write_text("just a string\n", encoding="utf-8")
        assert ConfigResolver(settings).aliases == {}

    def test_packaged_conf_dir_loads(self) -> None:
        resolver = ConfigResolver(MmsExtractorSettings())
        assert resolver.canonical_carrier("txt.att.net") == "mms.att.net"
        rules = resolver.resolve("txt.att.net")
        assert LiteralRule("Multimedia message") in rules.ignore_rules("text/plain")


@pytest.mark.parametrize(
    "name", sorted(p.name for p in PACKAGE_CONF_DIR.glob("*.yml") if p.name != "aliases.yml")
)
def test_packaged_rule_files_parse(name: str) -> None:
    rules = load_rule_file(PACKAGE_CONF_DIR / name)
    for mime_type, ignores in rules.ignore.items():
        for rule in ignores:
            assert getattr(rule, "pattern", True) is not None, (name, mime_type, rule)
