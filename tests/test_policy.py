"""Tests for conversion/policy.py — skip decision and encoder parameters."""

from __future__ import annotations

import pytest

from optimizer.conversion.models import ConversionConfig, OutputFormat
from optimizer.conversion.policy import SKIP_REASON_EXISTS, build_encode_params, decide
from optimizer.errors import EncodeFailure, UnreadableInput

from conftest import FakeCodec


@pytest.fixture
def webp_config(tmp_path):
    return ConversionConfig(input_root=tmp_path, quality=75, effort=5)


@pytest.fixture
def avif_config(tmp_path):
    return ConversionConfig(output_format=OutputFormat.AVIF, input_root=tmp_path, quality=60, effort=8)


class TestDecide:
    def test_new_file_is_converted(self, tmp_path, webp_config, fake_codec):
        src = tmp_path / "a.jpg"
        d = decide(src, webp_config, fake_codec)
        assert d.skip is False
        assert d.output_path == tmp_path / "a.webp"
        assert d.params.quality == 75
        assert d.params.effort == 5
        assert d.params.animated is False
        assert fake_codec.probed == [src]

    def test_existing_output_skips_without_probe(self, tmp_path, webp_config, fake_codec):
        (tmp_path / "a.webp").write_bytes(b"old")
        d = decide(tmp_path / "a.jpg", webp_config, fake_codec)
        assert d.skip is True
        assert d.reason == SKIP_REASON_EXISTS
        assert fake_codec.probed == []

    def test_other_format_output_does_not_skip(self, tmp_path, avif_config, fake_codec):
        (tmp_path / "a.webp").write_bytes(b"old")
        assert decide(tmp_path / "a.jpg", avif_config, fake_codec).skip is False

    def test_animated_avif_caps_effort_and_loops(self, tmp_path, avif_config):
        codec = FakeCodec(frames={"anim.gif": 12})
        d = decide(tmp_path / "anim.gif", avif_config, codec)
        assert d.params.animated is True
        assert d.params.effort == 4
        assert d.params.loop == 0

    def test_animated_webp_keeps_effort(self, tmp_path, webp_config):
        codec = FakeCodec(frames={"anim.gif": 3})
        d = decide(tmp_path / "anim.gif", webp_config, codec)
        assert d.params.animated is True
        assert d.params.effort == 5

    def test_effort_below_cap_untouched(self, tmp_path):
        cfg = ConversionConfig(output_format=OutputFormat.AVIF, input_root=tmp_path, effort=2)
        d = decide(tmp_path / "anim.gif", cfg, FakeCodec(frames={"anim.gif": 2}))
        assert d.params.effort == 2

    def test_custom_cap(self, tmp_path):
        cfg = ConversionConfig(
            output_format=OutputFormat.AVIF, input_root=tmp_path, effort=9,
            animated_effort_caps={OutputFormat.AVIF: 1},
        )
        d = decide(tmp_path / "anim.gif", cfg, FakeCodec(frames={"anim.gif": 2}))
        assert d.params.effort == 1

    def test_probe_failure_propagates(self, tmp_path, webp_config):
        with pytest.raises(UnreadableInput):
            decide(tmp_path / "c.jpg", webp_config, FakeCodec(unreadable={"c.jpg"}))

    def test_refuses_to_target_input(self, tmp_path, webp_config, fake_codec):
        with pytest.raises(EncodeFailure, match="overwrite"):
            decide(tmp_path / "a.webp", webp_config, fake_codec)


class TestBuildEncodeParams:
    def test_all_fields_present(self, tmp_path):
        cfg = ConversionConfig(input_root=tmp_path, lossless=True)
        params = build_encode_params(cfg)
        assert params.output_format is OutputFormat.WEBP
        assert params.lossless is True
        assert params.animated is False
        assert params.loop == 0
