# -*- coding: utf-8 -*-
"""
Cache do binário yt-dlp e do arquivo de cookies

Os dois caches são estado explícito, pertencente à instância do serviço de
aquisição, para que testes possam substituí-los e várias instâncias possam
coexistir. Recarregar o binário e regravar os cookies são operações
idempotentes (último escritor vence).
"""

import os
import platform
import stat
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import httpx

from ..domain.models.errors import DependencyMissingError
from .logging import get_logger
from .paths import ytdlp_binary_name

RELEASE_BASE_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download"

# Binários standalone (PyInstaller) não precisam de python3 no PATH
STANDALONE_BUILDS = {
    ("linux", "x86_64"): "yt-dlp_linux",
    ("linux", "amd64"): "yt-dlp_linux",
    ("linux", "aarch64"): "yt-dlp_linux_aarch64",
    ("linux", "arm64"): "yt-dlp_linux_aarch64",
    ("darwin", "x86_64"): "yt-dlp_macos",
    ("darwin", "arm64"): "yt-dlp_macos",
    ("windows", "amd64"): "yt-dlp.exe",
    ("windows", "x86_64"): "yt-dlp.exe",
}


def standalone_url(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """URL do build standalone para a plataforma (zipapp genérico como fallback)"""
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    build = STANDALONE_BUILDS.get((system, machine), "yt-dlp")
    return f"{RELEASE_BASE_URL}/{build}"


def download_file(url: str, destination: Path, timeout: float = 120.0) -> None:
    """Baixa um arquivo via HTTP seguindo redirecionamentos"""
    with httpx.stream("GET", url, follow_redirects=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(destination, "wb") as f:
            for chunk in response.iter_bytes():
                f.write(chunk)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AcquiredBinary:
    """Executável externo em cache"""

    path: Path
    fetched_at_utc: datetime

    def is_stale(self, now: datetime, max_age: timedelta) -> bool:
        return now - self.fetched_at_utc > max_age


class BinaryCache:
    """Mantém o binário yt-dlp, revalidado antes de cada uso"""

    def __init__(
        self,
        cache_dir: Path,
        max_age: timedelta = timedelta(hours=24),
        downloader: Callable[[str, Path], None] = download_file,
        clock: Callable[[], datetime] = _utcnow,
        url: Optional[str] = None,
    ):
        self.logger = get_logger("BinaryCache")
        self.cache_dir = Path(cache_dir)
        self.path = self.cache_dir / ytdlp_binary_name()
        self.max_age = max_age
        self.downloader = downloader
        self.clock = clock
        self.url = url or standalone_url()
        self.binary: Optional[AcquiredBinary] = None

    def ensure(self) -> Path:
        """Retorna um binário fresco, baixando de novo se estiver velho"""
        now = self.clock()

        # Processo novo: adota o arquivo existente usando o mtime como data
        if self.binary is None and self.path.exists():
            fetched_at = datetime.fromtimestamp(self.path.stat().st_mtime, tz=timezone.utc)
            self.binary = AcquiredBinary(self.path, fetched_at)

        if self.binary is not None and self.binary.is_stale(now, self.max_age):
            self.logger.info(
                "Binário yt-dlp com mais de %s (baixado em %s), baixando novamente",
                self.max_age,
                self.binary.fetched_at_utc.isoformat(),
            )
            self.invalidate()

        if self.binary is None or not self.binary.path.exists():
            self._fetch()

        return self.binary.path

    def invalidate(self) -> None:
        """Remove o binário em cache; o próximo ensure() baixa de novo"""
        self.binary = None
        self.path.unlink(missing_ok=True)

    def _fetch(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info("Baixando yt-dlp de %s", self.url)

        # Arquivo temporário único + rename atômico: downloads concorrentes
        # nunca expõem um binário parcial
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=".yt-dlp-")
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            self.downloader(self.url, tmp_path)
            mode = tmp_path.stat().st_mode
            tmp_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            os.replace(tmp_path, self.path)
        except (httpx.HTTPError, OSError) as e:
            tmp_path.unlink(missing_ok=True)
            self.logger.error("Falha ao baixar o yt-dlp: %s", e)
            raise DependencyMissingError(f"yt-dlp indisponível: {e}") from e

        self.binary = AcquiredBinary(self.path, self.clock())
        self.logger.info("yt-dlp pronto em %s", self.path)


class CookieCache:
    """Grava os cookies num caminho fixo somente quando o conteúdo muda"""

    def __init__(self, path: Path):
        self.logger = get_logger("CookieCache")
        self.path = Path(path)
        self._last_written: Optional[str] = None

    def write(self, content: str) -> Path:
        if self._last_written is None and self.path.exists():
            self._last_written = self.path.read_text(encoding="utf-8")

        if content != self._last_written or not self.path.exists():
            self._write(content)
            self._last_written = content
        return self.path

    def _write(self, content: str) -> None:
        self.logger.debug("Gravando cookies em %s", self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")
