# -*- coding: utf-8 -*-
"""
Gerenciamento de configurações usando pydantic-settings
"""

import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings

from .config import get_config


class AppSettings(BaseSettings):
    """Configurações da aplicação"""

    # Binários externos
    ffmpeg_path: Optional[str] = None
    ytdlp_path: Optional[str] = None  # se definido, não usa o cache

    # Aquisição do vídeo de origem
    ytdlp_cache_dir: str = str(Path(tempfile.gettempdir()) / "reaction-composer")
    ytdlp_freshness_hours: float = 24.0
    ytdlp_player_clients: List[str] = ["ios", "android", "tv", "web"]
    ytdlp_retry_delay_s: float = 2.0
    ytdlp_timeout_s: float = 120.0
    ytdlp_proxy: Optional[str] = None
    cookie_cache_path: str = str(
        Path(tempfile.gettempdir()) / "reaction-composer" / "cookies.txt"
    )
    youtube_cookies: Optional[str] = None  # conteúdo Netscape

    # Composição
    compose_timeout_s: float = 600.0
    brand_color: str = "0x2EE6A6"
    band_color: str = "0x0B0F14"
    watermark_text: str = "ReactionBooth"
    watermark_font_file: Optional[str] = None

    log_file: str = "reaction_composer.log"

    class Config:
        env_prefix = "REACTION_"
        env_file = ".env"
        case_sensitive = False


def load_settings() -> AppSettings:
    """Carrega as configurações da aplicação"""
    # Primeiro tenta carregar do config.json (compatibilidade)
    config_data = get_config()
    if config_data:
        return AppSettings(**config_data)

    # Senão carrega das variáveis de ambiente ou padrões
    return AppSettings()
