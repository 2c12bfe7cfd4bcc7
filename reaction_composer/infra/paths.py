# -*- coding: utf-8 -*-
"""
Resolução de caminhos dos binários externos (FFmpeg, yt-dlp)
"""

import os
import shutil
from pathlib import Path
from typing import Optional


def _resolve_bin(name: str, user_path: Optional[str]) -> Optional[str]:
    """Usa o caminho configurado se existir, senão procura no PATH"""
    if user_path:
        return str(Path(user_path).resolve()) if os.path.exists(user_path) else None
    return shutil.which(name)


def ffmpeg_bin(user_path: Optional[str] = None) -> Optional[str]:
    """Resolve o caminho para o binário do FFmpeg (None se ausente)"""
    return _resolve_bin("ffmpeg", user_path)


def ytdlp_bin(user_path: Optional[str] = None) -> Optional[str]:
    """Resolve um yt-dlp configurado explicitamente (sem cache)"""
    if not user_path:
        return None
    return _resolve_bin("yt-dlp", user_path)


def ytdlp_binary_name() -> str:
    """Nome do arquivo do binário em cache"""
    return "yt-dlp.exe" if os.name == "nt" else "yt-dlp"
