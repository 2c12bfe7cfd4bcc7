# -*- coding: utf-8 -*-
"""
Testes de integração do serviço de composição (FFmpeg e yt-dlp simulados)
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

from reaction_composer.application.services.composition_service import CompositionService
from reaction_composer.application.services.download_flow import DownloadFlow
from reaction_composer.domain.models.download_state import Choosing, Failed
from reaction_composer.domain.models.errors import (
    CompositingError,
    DependencyMissingError,
    PermanentAcquisitionError,
)
from reaction_composer.domain.models.events import Event, EventLog, EventType
from reaction_composer.domain.models.timeline import CompositionRequest, Layout, VolumeSettings
from reaction_composer.infra.settings import AppSettings
from reaction_composer.rendering.runner import Progress

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class FakeAcquisition:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def fetch(self, source_url, destination_path, cookie_material=None):
        self.calls.append((source_url, Path(destination_path), cookie_material))
        if self.error:
            raise self.error
        Path(destination_path).write_bytes(b"source")
        return Path(destination_path)


class FakeRunner:
    """Simula o FFmpeg gravando o arquivo de saída (último argumento)"""

    def __init__(self, error=None, progress=()):
        self.error = error
        self.progress = progress
        self.commands = []
        self.timeouts = []

    def run(self, cmd, on_progress=None, timeout=600):
        self.commands.append(cmd)
        self.timeouts.append(timeout)
        if self.error:
            raise self.error
        for item in self.progress:
            if on_progress:
                on_progress(item)
        Path(cmd[-1]).write_bytes(b"composed")


@pytest.fixture
def ffmpeg(tmp_path):
    path = tmp_path / "bin" / "ffmpeg"
    path.parent.mkdir()
    path.write_text("")
    return path


@pytest.fixture
def settings(ffmpeg):
    return AppSettings(ffmpeg_path=str(ffmpeg), compose_timeout_s=300)


@pytest.fixture
def recording(tmp_path):
    path = tmp_path / "gravacao.webm"
    path.write_bytes(b"recording")
    return path


def make_request(recording, output_path, events=None, layout=Layout.PIP_BOTTOM_RIGHT, **kwargs):
    if events is None:
        events = (Event(EventType.PLAY, 1000, 5.0), Event(EventType.PAUSE, 4000, 8.0))
    event_log = EventLog(
        source_video_id="dQw4w9WgXcQ",
        source_video_url=URL,
        recording_started_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        recording_duration_ms=6000,
        events=tuple(events),
    )
    return CompositionRequest(
        local_recording_path=recording,
        event_log=event_log,
        layout=layout,
        output_path=output_path,
        **kwargs,
    )


def test_compose_end_to_end(settings, recording, tmp_path, ffmpeg):
    """Testa o pipeline completo até o arquivo final"""
    acquisition = FakeAcquisition()
    runner = FakeRunner()
    service = CompositionService(settings, acquisition=acquisition, runner=runner)
    output = tmp_path / "out" / "reacao.mp4"

    result = service.compose(
        make_request(recording, output, cookie_material="cookies", volume_settings=VolumeSettings(50, 150))
    )

    assert result == output
    assert output.read_bytes() == b"composed"

    source_url, source_path, cookies = acquisition.calls[0]
    assert source_url == URL
    assert cookies == "cookies"

    cmd = runner.commands[0]
    assert cmd[0] == str(ffmpeg.resolve())
    inputs = [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "-i"]
    assert inputs == [str(source_path), str(recording)]
    graph = cmd[cmd.index("-filter_complex") + 1]
    assert "concat=n=3:v=1:a=1[srcv][srca]" in graph
    assert "volume=0.50[src_audio]" in graph
    assert "volume=1.50[rec_audio]" in graph
    assert cmd[cmd.index("-t") + 1] == "6.000"
    assert ["-map", "[outv]"] == cmd[cmd.index("-map"): cmd.index("-map") + 2]
    assert runner.timeouts == [300]


def test_temp_directory_removed_after_success(settings, recording, tmp_path):
    acquisition = FakeAcquisition()
    service = CompositionService(settings, acquisition=acquisition, runner=FakeRunner())

    service.compose(make_request(recording, tmp_path / "reacao.mp4"))

    source_path = acquisition.calls[0][1]
    assert not source_path.parent.exists()


def test_temp_directory_removed_after_failure(settings, recording, tmp_path):
    """Falha do FFmpeg: sem saída parcial e sem diretório temporário"""
    acquisition = FakeAcquisition()
    runner = FakeRunner(error=CompositingError("FFmpeg falhou com código 1"))
    service = CompositionService(settings, acquisition=acquisition, runner=runner)
    output = tmp_path / "reacao.mp4"

    with pytest.raises(CompositingError):
        service.compose(make_request(recording, output))

    assert not output.exists()
    assert not acquisition.calls[0][1].parent.exists()


def test_acquisition_failure_propagates(settings, recording, tmp_path):
    acquisition = FakeAcquisition(error=PermanentAcquisitionError("Vídeo indisponível", attempts=1))
    runner = FakeRunner()
    service = CompositionService(settings, acquisition=acquisition, runner=runner)

    with pytest.raises(PermanentAcquisitionError) as exc_info:
        service.compose(make_request(recording, tmp_path / "reacao.mp4"))

    assert exc_info.value.category == "acquisition"
    assert runner.commands == []


def test_missing_ffmpeg_fails_before_any_work(recording, tmp_path):
    settings = AppSettings(ffmpeg_path=str(tmp_path / "nao-existe" / "ffmpeg"))
    acquisition = FakeAcquisition()
    service = CompositionService(settings, acquisition=acquisition, runner=FakeRunner())

    with pytest.raises(DependencyMissingError):
        service.compose(make_request(recording, tmp_path / "reacao.mp4"))

    assert acquisition.calls == []


def test_empty_event_log_copies_recording(settings, recording, tmp_path):
    """Sem eventos: a gravação local é a saída"""
    acquisition = FakeAcquisition()
    runner = FakeRunner()
    service = CompositionService(settings, acquisition=acquisition, runner=runner)
    output = tmp_path / "reacao.webm"

    service.compose(make_request(recording, output, events=()))

    assert output.read_bytes() == b"recording"
    assert acquisition.calls == []
    assert runner.commands == []


def test_progress_percent(settings, recording, tmp_path):
    runner = FakeRunner(progress=[Progress(out_time_ms=3000, speed=1.0, percent=None)])
    service = CompositionService(settings, acquisition=FakeAcquisition(), runner=runner)
    received = []

    service.compose(make_request(recording, tmp_path / "reacao.mp4"), on_progress=received.append)

    assert received[0].percent == pytest.approx(50.0)


def test_watermark_and_layout_reach_graph(settings, recording, tmp_path):
    runner = FakeRunner()
    service = CompositionService(settings, acquisition=FakeAcquisition(), runner=runner)

    service.compose(
        make_request(recording, tmp_path / "reacao.mp4", layout=Layout.STACKED, watermark_enabled=True)
    )

    graph = runner.commands[0][runner.commands[0].index("-filter_complex") + 1]
    assert "s=1080x60" in graph
    assert "fontcolor=white@0.85" in graph


def test_check_dependencies_uses_path(monkeypatch, recording):
    monkeypatch.setattr(
        "reaction_composer.application.services.composition_service.ffmpeg_bin",
        Mock(return_value=None),
    )
    service = CompositionService(AppSettings(), acquisition=FakeAcquisition(), runner=FakeRunner())

    with pytest.raises(DependencyMissingError) as exc_info:
        service.check_dependencies()

    assert exc_info.value.category == "dependency"


def test_missing_recording_with_empty_log(settings, tmp_path):
    """Gravação ausente vira erro de composição, sem exceção crua"""
    service = CompositionService(settings, acquisition=FakeAcquisition(), runner=FakeRunner())

    with pytest.raises(CompositingError):
        service.compose(make_request(tmp_path / "ausente.webm", tmp_path / "reacao.mp4", events=()))


def test_download_flow_leaves_composing_on_io_error(settings, tmp_path):
    service = CompositionService(settings, acquisition=FakeAcquisition(), runner=FakeRunner())
    flow = DownloadFlow(service)
    flow.choose(Layout.PIP_BOTTOM_RIGHT)
    request = make_request(tmp_path / "ausente.webm", tmp_path / "reacao.mp4", events=())

    state = flow.start(request.local_recording_path, request.event_log, request.output_path)

    assert isinstance(state, Failed)
    assert state.category == "compositing"
    assert isinstance(flow.choose(Layout.STACKED), Choosing)


def test_move_failure_becomes_compositing_error(settings, recording, tmp_path, monkeypatch):
    monkeypatch.setattr(
        "reaction_composer.application.services.composition_service.shutil.move",
        Mock(side_effect=PermissionError("sem permissão")),
    )
    service = CompositionService(settings, acquisition=FakeAcquisition(), runner=FakeRunner())

    with pytest.raises(CompositingError):
        service.compose(make_request(recording, tmp_path / "reacao.mp4"))
