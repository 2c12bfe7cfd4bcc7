# -*- coding: utf-8 -*-
"""
Taxonomia de erros da composição de reações

Cada erro terminal carrega uma ``category`` para que o chamador distinga
reconstrução, aquisição, composição e dependência ausente.
"""

from __future__ import annotations


class CompositionError(Exception):
    """Erro terminal de uma requisição de composição"""

    category: str = "compositing"
    retryable: bool = False


class EventLogError(CompositionError):
    """Log de eventos malformado"""

    category = "reconstruction"


class AcquisitionError(CompositionError):
    """Falha ao obter o vídeo de origem"""

    category = "acquisition"

    def __init__(self, message: str, attempts: int = 0, stderr: str = ""):
        super().__init__(message)
        self.attempts = attempts
        self.stderr = stderr


class PermanentAcquisitionError(AcquisitionError):
    """Vídeo removido, privado, bloqueado por região ou por idade"""

    retryable = False


class TransientAcquisitionError(AcquisitionError):
    """Bloqueio anti-bot ou falha temporária de extração"""

    retryable = True


class CompositingError(CompositionError):
    """FFmpeg retornou erro ou excedeu o timeout"""

    category = "compositing"


class DependencyMissingError(CompositionError):
    """Ferramenta externa obrigatória ausente (serviço indisponível)"""

    category = "dependency"


class InvalidLayoutError(ValueError):
    """Identificador de layout fora do conjunto suportado"""
