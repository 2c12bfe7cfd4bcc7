# -*- coding: utf-8 -*-
"""
Configuração de logging da aplicação
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Bibliotecas que logam cada requisição HTTP em INFO
NOISY_LOGGERS = ("httpx", "httpcore")

_installed_handlers = []


def setup_logging(log_file: str = "reaction_composer.log", level: int = logging.INFO):
    """Configura o sistema de logging

    Pode ser chamada mais de uma vez: os handlers instalados anteriormente
    são removidos antes de instalar os novos.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    # Handler para arquivo
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    # Handler para console
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)  # Só warnings e erros no console

    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers[:] = [file_handler, console_handler]

    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # O download do yt-dlp já é logado pelo BinaryCache
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Obtém um logger com o nome especificado"""
    return logging.getLogger(name)
