# -*- coding: utf-8 -*-
"""
Testes de integração para a construção do comando de renderização
"""

from pathlib import Path

from reaction_composer.domain.models.timeline import Layout, RenderSettings, TimelineSegment
from reaction_composer.rendering.cli_builder import CliBuilder
from reaction_composer.rendering.graph_builder import FilterGraph, GraphBuilder


def test_cli_builder_basic():
    """Testa construção de comando FFmpeg básico"""
    graph = GraphBuilder().build(
        [TimelineSegment("playing", 0, 2500, 0.0, 2.5)], Layout.SIDE_BY_SIDE, 2.5
    )
    graph.add_input(Path("source.mp4"))
    graph.add_input(Path("gravacao.webm"))

    cmd = CliBuilder("/usr/bin/ffmpeg").make_command(graph, Path("saida.mp4"), RenderSettings())

    assert cmd[:3] == ["/usr/bin/ffmpeg", "-y", "-hide_banner"]
    assert cmd[3:7] == ["-i", "source.mp4", "-i", "gravacao.webm"]
    assert cmd[cmd.index("-filter_complex") + 1] == graph.to_string()
    assert cmd.count("-map") == 2
    assert "[outv]" in cmd
    assert "[outa]" in cmd
    assert cmd[cmd.index("-c:v") + 1] == "libx264"
    assert cmd[cmd.index("-preset") + 1] == "fast"
    assert cmd[cmd.index("-crf") + 1] == "23"
    assert cmd[cmd.index("-c:a") + 1] == "aac"
    assert cmd[cmd.index("-b:a") + 1] == "128k"
    assert cmd[cmd.index("-pix_fmt") + 1] == "yuv420p"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert cmd[cmd.index("-t") + 1] == "2.500"
    assert cmd[-1] == "saida.mp4"


def test_cli_builder_other_codec_skips_x264_options():
    graph = FilterGraph()
    graph.duration_s = 1.0
    settings = RenderSettings(vcodec="libvpx-vp9")

    cmd = CliBuilder().make_command(graph, Path("saida.webm"), settings)

    assert cmd[0] == "ffmpeg"
    assert "-preset" not in cmd
    assert "-crf" not in cmd
