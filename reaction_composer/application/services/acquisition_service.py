# -*- coding: utf-8 -*-
"""
application/services/acquisition_service.py
Serviço de aquisição do vídeo de origem via yt-dlp

Tenta identidades de cliente alternativas, em ordem fixa, para contornar
defesas anti-automação. Falhas permanentes (vídeo removido, privado,
bloqueado) abortam na hora; falhas transitórias passam para a próxima
identidade.
"""

import subprocess
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ...domain.models.errors import (
    DependencyMissingError,
    PermanentAcquisitionError,
    TransientAcquisitionError,
)
from ...infra.binary_cache import BinaryCache, CookieCache
from ...infra.logging import get_logger
from ...infra.paths import ytdlp_bin
from ...infra.settings import AppSettings, load_settings
from ...rendering.runner import Runner

FORMAT_SELECTOR = (
    "bestvideo[ext=mp4][height<=1080]+bestaudio[ext=m4a]"
    "/best[ext=mp4][height<=1080]/best"
)

# Mensagens do extrator que indicam que nenhuma nova tentativa vai adiantar
PERMANENT_MARKERS = (
    "video unavailable",
    "private video",
    "this video has been removed",
    "this video is no longer available",
    "not available in your country",
    "blocked it in your country",
    "the uploader has not made this video available",
    "sign in to confirm your age",
    "age-restricted",
    "members-only",
    "join this channel to get access",
    "account associated with this video has been terminated",
    "copyright claim",
)


class FailureKind(str, Enum):
    PERMANENT = "permanent"
    TRANSIENT = "transient"


def classify_failure(stderr: str) -> FailureKind:
    """Classifica a saída de erro do yt-dlp"""
    text = (stderr or "").lower()
    if any(marker in text for marker in PERMANENT_MARKERS):
        return FailureKind.PERMANENT
    return FailureKind.TRANSIENT


@dataclass(frozen=True)
class RetryPolicy:
    """Política ordenada: identidades de cliente + classificador de falhas"""

    strategies: Sequence[str]
    classify: Callable[[str], FailureKind] = classify_failure
    delay_s: float = 2.0


class AcquisitionService:
    """Obtém o vídeo de origem como arquivo local"""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        binary_cache: Optional[BinaryCache] = None,
        cookie_cache: Optional[CookieCache] = None,
        policy: Optional[RetryPolicy] = None,
        runner: Optional[Runner] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = get_logger("AcquisitionService")
        self.settings = settings or load_settings()
        self.binary_cache = binary_cache or BinaryCache(
            Path(self.settings.ytdlp_cache_dir),
            max_age=timedelta(hours=self.settings.ytdlp_freshness_hours),
        )
        self.cookie_cache = cookie_cache or CookieCache(Path(self.settings.cookie_cache_path))
        self.policy = policy or RetryPolicy(
            strategies=tuple(self.settings.ytdlp_player_clients),
            delay_s=self.settings.ytdlp_retry_delay_s,
        )
        self.runner = runner or Runner()
        self.sleep = sleep

    def resolve_binary(self) -> str:
        """yt-dlp configurado explicitamente, ou o binário em cache"""
        if self.settings.ytdlp_path:
            configured = ytdlp_bin(self.settings.ytdlp_path)
            if not configured:
                raise DependencyMissingError(
                    f"yt-dlp não encontrado em {self.settings.ytdlp_path}"
                )
            return configured
        return str(self.binary_cache.ensure())

    def build_command(
        self,
        binary: str,
        source_url: str,
        destination_path: Path,
        client: str,
        cookie_path: Optional[Path] = None,
    ) -> List[str]:
        """Monta a invocação do yt-dlp para uma identidade de cliente"""
        cmd = [
            binary,
            source_url,
            "--extractor-args",
            f"youtube:player_client={client}",
            "-f",
            FORMAT_SELECTOR,
            "--merge-output-format",
            "mp4",
            "--no-playlist",
            "--no-warnings",
            "-o",
            str(destination_path),
        ]
        if cookie_path:
            cmd.extend(["--cookies", str(cookie_path)])
        if self.settings.ytdlp_proxy:
            cmd.extend(["--proxy", self.settings.ytdlp_proxy])
        return cmd

    def fetch(
        self,
        source_url: str,
        destination_path: Path,
        cookie_material: Optional[str] = None,
    ) -> Path:
        """Baixa o vídeo de origem para destination_path

        Raises:
            PermanentAcquisitionError: vídeo indisponível; sem novas tentativas
            TransientAcquisitionError: todas as identidades falharam
            DependencyMissingError: yt-dlp não pôde ser obtido
        """
        destination_path = Path(destination_path)
        binary = self.resolve_binary()
        cookie_path = self.cookie_cache.write(cookie_material) if cookie_material else None

        self.logger.info(
            "Baixando %s com %d identidades de cliente (cookies=%s)",
            source_url,
            len(self.policy.strategies),
            bool(cookie_path),
        )

        last_error = ""
        attempts = 0
        for client in self.policy.strategies:
            if attempts > 0:
                self.sleep(self.policy.delay_s)
            attempts += 1

            cmd = self.build_command(binary, source_url, destination_path, client, cookie_path)
            try:
                result = self.runner.execute(cmd, timeout=self.settings.ytdlp_timeout_s)
            except subprocess.TimeoutExpired:
                last_error = f"timeout de {self.settings.ytdlp_timeout_s}s com cliente {client}"
                self.logger.warning("Tentativa %d (%s): %s", attempts, client, last_error)
                continue
            except OSError as e:
                raise DependencyMissingError(f"Falha ao executar o yt-dlp: {e}") from e

            if result.returncode == 0 and destination_path.exists():
                self.logger.info("Download concluído com cliente %s: %s", client, destination_path)
                return destination_path

            last_error = (result.stderr or "").strip() or "yt-dlp não gerou o arquivo de saída"
            kind = self.policy.classify(last_error) if result.returncode != 0 else FailureKind.TRANSIENT
            if kind == FailureKind.PERMANENT:
                self.logger.error("Vídeo indisponível (%s): %s", client, last_error)
                raise PermanentAcquisitionError(
                    f"Vídeo de origem indisponível: {last_error[-500:]}",
                    attempts=attempts,
                    stderr=last_error,
                )

            self.logger.warning(
                "Tentativa %d (%s) falhou, erro transitório: %s",
                attempts,
                client,
                last_error[-500:],
            )

        # Falha sistemática em todos os clientes costuma indicar binário
        # desatualizado: força novo download na próxima chamada
        if not self.settings.ytdlp_path:
            self.binary_cache.invalidate()

        raise TransientAcquisitionError(
            f"Download falhou após {attempts} tentativas: {last_error[-500:]}",
            attempts=attempts,
            stderr=last_error,
        )
