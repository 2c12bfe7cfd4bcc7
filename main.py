"""
main.py: Interface CLI seguindo Clean Architecture
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from reaction_composer.application.services.composition_service import CompositionService
from reaction_composer.application.services.download_flow import DownloadFlow
from reaction_composer.application.services.sync_playback import derive_sync_target
from reaction_composer.domain.models.download_state import Failed
from reaction_composer.domain.models.errors import EventLogError, InvalidLayoutError
from reaction_composer.domain.models.events import EventLog, load_event_log
from reaction_composer.domain.models.timeline import (
    Layout,
    VolumeSettings,
    parse_layout,
)
from reaction_composer.infra.logging import setup_logging
from reaction_composer.infra.settings import load_settings
from reaction_composer.rendering.timeline_reconstructor import sort_events

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNAVAILABLE = 2


def _load_events_or_empty(path: Path) -> EventLog:
    """Lê o log; se estiver malformado, segue sem eventos (gravação bruta)"""
    try:
        return load_event_log(path)
    except (EventLogError, OSError) as e:
        logging.warning("Log de eventos inválido (%s), usando a gravação sem composição", e)
        return EventLog(
            source_video_id="",
            source_video_url="",
            recording_started_at=datetime.now(timezone.utc),
            recording_duration_ms=0,
        )


def cmd_compor(args, settings) -> int:
    try:
        layout = parse_layout(args.layout)
    except InvalidLayoutError as e:
        print(f"❌ {e}")
        return EXIT_ERROR

    recording = Path(args.gravacao).resolve()
    event_log = _load_events_or_empty(Path(args.eventos))

    cookies = None
    if args.cookies:
        try:
            cookies = Path(args.cookies).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"❌ Arquivo de cookies inválido: {e}")
            return EXIT_ERROR
    elif settings.youtube_cookies:
        cookies = settings.youtube_cookies

    flow = DownloadFlow(CompositionService(settings))
    flow.choose(
        layout,
        VolumeSettings(
            source_volume_pct=args.volume_origem,
            local_volume_pct=args.volume_gravacao,
        ),
    )
    state = flow.start(
        local_recording_path=recording,
        event_log=event_log,
        output_path=Path(args.saida).resolve(),
        watermark_enabled=args.marca_dagua,
        cookie_material=cookies,
    )

    if isinstance(state, Failed):
        print(f"❌ Erro na composição ({state.category}): {state.message}")
        if state.retryable:
            print("   A falha é transitória, tente novamente mais tarde.")
        return EXIT_UNAVAILABLE if state.category == "dependency" else EXIT_ERROR

    print(f"✅ Reação composta com sucesso: {state.output_path}")
    return EXIT_OK


def cmd_sincronizar(args, settings) -> int:
    try:
        event_log = load_event_log(Path(args.eventos))
    except (EventLogError, OSError) as e:
        print(f"❌ Log de eventos inválido: {e}")
        return EXIT_ERROR

    target = derive_sync_target(sort_events(event_log.events), args.posicao * 1000.0)
    if target.should_play:
        print(f"▶ origem tocando em {target.expected_position_s:.3f}s")
    else:
        position = "início" if target.expected_position_s is None else f"{target.expected_position_s:.3f}s"
        print(f"⏸ origem pausada ({position})")
    return EXIT_OK


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Compõe o vídeo de reação a partir da gravação local e do log de eventos."
    )
    subparsers = parser.add_subparsers(dest="comando", required=True)

    compor = subparsers.add_parser("compor", help="Gera o vídeo composto")
    compor.add_argument("--gravacao", required=True, help="Arquivo da gravação local")
    compor.add_argument("--eventos", required=True, help="Log de eventos (JSON)")
    compor.add_argument("--saida", required=True, help="Arquivo de saída do vídeo")
    compor.add_argument(
        "--layout",
        default=Layout.PIP_BOTTOM_RIGHT.value,
        help="Layout da composição: " + ", ".join(layout.value for layout in Layout),
    )
    compor.add_argument(
        "--volume_origem",
        type=int,
        default=100,
        help="Volume do vídeo de origem (0 a 200)",
    )
    compor.add_argument(
        "--volume_gravacao",
        type=int,
        default=100,
        help="Volume da gravação local (0 a 200)",
    )
    compor.add_argument(
        "--marca_dagua",
        action="store_true",
        help="Marca d'água destacada na faixa de rodapé",
    )
    compor.add_argument("--cookies", help="Arquivo de cookies (formato Netscape)")
    compor.set_defaults(func=cmd_compor)

    sincronizar = subparsers.add_parser(
        "sincronizar", help="Mostra o estado esperado da origem numa posição da gravação"
    )
    sincronizar.add_argument("--eventos", required=True, help="Log de eventos (JSON)")
    sincronizar.add_argument(
        "--posicao", type=float, required=True, help="Posição da gravação em segundos"
    )
    sincronizar.set_defaults(func=cmd_sincronizar)

    args = parser.parse_args(argv)

    # Setup logging
    settings = load_settings()
    setup_logging(settings.log_file, logging.DEBUG)

    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
