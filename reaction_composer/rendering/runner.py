# -*- coding: utf-8 -*-
"""
Execução de processos externos (FFmpeg, yt-dlp) com timeout rígido
"""

import os
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..domain.models.errors import CompositingError
from ..infra.logging import get_logger


@dataclass(frozen=True)
class Progress:
    """Representa o progresso de renderização"""

    out_time_ms: int
    speed: Optional[float]
    percent: Optional[float]
    frame: Optional[int] = None
    fps: Optional[float] = None
    bitrate: Optional[str] = None


class Runner:
    """Executa comandos externos matando o processo filho em timeout ou cancelamento"""

    def __init__(self):
        self.logger = get_logger("Runner")

    def execute(
        self,
        cmd: List[str],
        timeout: Optional[float],
        on_stdout_line: Optional[Callable[[str], None]] = None,
    ) -> subprocess.CompletedProcess:
        """Executa o comando e devolve o CompletedProcess (sem checar o código)

        Em timeout o filho é terminado e TimeoutExpired é propagado; em
        qualquer outra interrupção (ex.: KeyboardInterrupt) o filho também é
        morto antes de propagar.
        """
        kwargs = {}
        if os.name == "nt":
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            **kwargs,
        )

        stdout_lines: List[str] = []
        stderr_chunks: List[str] = []

        def _drain_stderr():
            if process.stderr:
                stderr_chunks.append(process.stderr.read())

        stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
        stderr_thread.start()

        timer = None
        timed_out = threading.Event()
        if timeout:
            def _on_timeout():
                timed_out.set()
                process.kill()

            timer = threading.Timer(timeout, _on_timeout)
            timer.daemon = True
            timer.start()

        try:
            if process.stdout:
                for line in process.stdout:
                    line = line.rstrip("\n")
                    stdout_lines.append(line)
                    if on_stdout_line:
                        on_stdout_line(line)
            return_code = process.wait()
        except BaseException:
            self.logger.error("Execução interrompida, terminando processo filho")
            process.kill()
            process.wait()
            raise
        finally:
            if timer:
                timer.cancel()
            stderr_thread.join(timeout=5)

        if timed_out.is_set():
            raise subprocess.TimeoutExpired(cmd, timeout, "\n".join(stdout_lines), "".join(stderr_chunks))

        return subprocess.CompletedProcess(
            args=cmd,
            returncode=return_code,
            stdout="\n".join(stdout_lines),
            stderr="".join(stderr_chunks),
        )

    def run(
        self,
        cmd: List[str],
        on_progress: Optional[Callable[[Progress], None]] = None,
        timeout: Optional[float] = 600,  # 10 minutos por padrão
    ) -> subprocess.CompletedProcess:
        """Executa comando FFmpeg com callback de progresso e timeout"""
        self.logger.info("Executando comando FFmpeg: %s", " ".join(map(str, cmd)))

        # Adiciona parâmetros para progresso se callback fornecido
        if on_progress:
            cmd = cmd[:-1] + ["-progress", "pipe:1", "-nostats"] + cmd[-1:]

        progress_state: dict = {}

        def _on_line(line: str):
            progress = self._parse_progress_line(line, progress_state)
            if progress and on_progress:
                on_progress(progress)

        try:
            result = self.execute(cmd, timeout, _on_line if on_progress else None)
        except subprocess.TimeoutExpired:
            self.logger.error("Timeout após %ss: %s", timeout, " ".join(map(str, cmd)))
            raise CompositingError(f"Comando FFmpeg excedeu timeout de {timeout}s")
        except OSError as e:
            self.logger.error("Erro ao iniciar o FFmpeg: %s", e)
            raise CompositingError(f"Erro na execução do FFmpeg: {e}") from e

        if result.returncode != 0:
            self.logger.error(
                "Comando FFmpeg retornou código %d. Stderr: %s",
                result.returncode,
                result.stderr,
            )
            raise CompositingError(
                f"FFmpeg falhou com código {result.returncode}: {result.stderr[-2000:]}"
            )

        self.logger.info("Comando FFmpeg finalizado com sucesso.")
        return result

    def _parse_progress_line(self, line: str, state: dict) -> Optional[Progress]:
        """Parseia linha de progresso do FFmpeg (formato key=value)

        O bloco de progresso chega uma chave por linha; o estado acumula as
        chaves até ``progress=``, que fecha o bloco.
        """
        if not line or "=" not in line:
            return None

        key, value = line.strip().split("=", 1)
        state[key] = value
        if key != "progress":
            return None

        try:
            out_time_ms = int(state.get("out_time_us", state.get("out_time_ms", "0"))) // 1000
            speed_raw = state.get("speed", "").rstrip("x")
            fps_raw = state.get("fps")
            frame_raw = state.get("frame")
            return Progress(
                out_time_ms=out_time_ms,
                speed=float(speed_raw) if speed_raw and speed_raw != "N/A" else None,
                percent=None,  # calculado pelo chamador com base na duração total
                frame=int(frame_raw) if frame_raw else None,
                fps=float(fps_raw) if fps_raw else None,
                bitrate=state.get("bitrate"),
            )
        except ValueError:
            return None
        finally:
            state.clear()
