# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
from pathlib import Path

import pydantic
import pytest

from xrfstream.config import PayloadMode, StreamerConfig, load_streamer_config


class TestStreamerConfig:
    def test_defaults(self) -> None:
        config = StreamerConfig()
        assert config.enabled
        assert config.endpoint == 'tcp://*:43434'
        assert config.topic == 'XRF-Counts'
        assert config.payload_mode is PayloadMode.COUNTS

    def test_spectra_mode(self) -> None:
        config = StreamerConfig(send_counts=False, send_spectra=True)
        assert config.payload_mode is PayloadMode.SPECTRA

    @pytest.mark.parametrize(
        ('send_counts', 'send_spectra'), [(True, True), (False, False)]
    )
    def test_exactly_one_payload_flag_required(
        self, send_counts: bool, send_spectra: bool
    ) -> None:
        with pytest.raises(pydantic.ValidationError, match="Exactly one of"):
            StreamerConfig(send_counts=send_counts, send_spectra=send_spectra)

    def test_rejects_unknown_transport(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            StreamerConfig(transport='kafka')

    def test_rejects_empty_queue(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            StreamerConfig(queue_size=0)

    def test_is_frozen(self) -> None:
        config = StreamerConfig()
        with pytest.raises(pydantic.ValidationError):
            config.topic = 'other'


class TestLoadStreamerConfig:
    def test_packaged_default_matches_model_defaults(self) -> None:
        assert load_streamer_config() == StreamerConfig()

    def test_loads_file(self, tmp_path: Path) -> None:
        path = tmp_path / 'streamer.yaml'
        path.write_text("endpoint: tcp://127.0.0.1:5555\nqueue_size: 7\n")
        config = load_streamer_config(path)
        assert config.endpoint == 'tcp://127.0.0.1:5555'
        assert config.queue_size == 7
        assert config.topic == 'XRF-Counts'

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / 'streamer.yaml'
        path.write_text("")
        assert load_streamer_config(path) == StreamerConfig()

    def test_overrides_take_precedence_and_none_is_ignored(self) -> None:
        config = load_streamer_config(endpoint='tcp://127.0.0.1:6000', topic=None)
        assert config.endpoint == 'tcp://127.0.0.1:6000'
        assert config.topic == 'XRF-Counts'

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="not found"):
            load_streamer_config(tmp_path / 'missing.yaml')

    def test_invalid_file_raises_validation_error(self, tmp_path: Path) -> None:
        path = tmp_path / 'streamer.yaml'
        path.write_text("send_counts: false\n")
        with pytest.raises(pydantic.ValidationError):
            load_streamer_config(path)
