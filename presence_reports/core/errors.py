# presence_reports/core/errors.py
"""
Erros do motor de relatórios.

- NotFound: escopo (pessoa, grupo, gateway, prédio) inexistente
- InvalidWindow: janela com to_ts <= from_ts
- InvalidParameter: granularidade inválida, min_duration_seconds negativo, etc.
- UpstreamUnavailable: falha ao ler o banco de sessões

Os três primeiros são levantados antes de qualquer leitura de sessões.
"""

from __future__ import annotations


class ReportError(Exception):
    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ReportError):
    status_code = 404


class InvalidWindow(ReportError):
    status_code = 400


class InvalidParameter(ReportError):
    status_code = 400


class UpstreamUnavailable(ReportError):
    status_code = 503
