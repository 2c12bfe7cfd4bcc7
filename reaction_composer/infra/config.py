# Config loader para reaction_composer
import json
import os


def get_config(config_path: str = "config.json") -> dict:
    """Lê o config.json do diretório de trabalho (vazio se não existir)"""
    config_path = os.path.abspath(config_path)

    if not os.path.exists(config_path):
        return {}

    with open(config_path, encoding="utf-8") as f:
        return json.load(f)
