from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

from texlink.domain.models import RESULT_APPROVED, RESULT_PARTIAL, RESULT_REJECTED


LANCADO_PELA_MARCA = "LANCADO_PELA_MARCA"
DISPONIVEL_PARA_OUTRAS = "DISPONIVEL_PARA_OUTRAS"
ACEITO_PELA_FACCAO = "ACEITO_PELA_FACCAO"
EM_PREPARACAO_SAIDA_MARCA = "EM_PREPARACAO_SAIDA_MARCA"
EM_TRANSITO_PARA_FACCAO = "EM_TRANSITO_PARA_FACCAO"
EM_PREPARACAO_ENTRADA_FACCAO = "EM_PREPARACAO_ENTRADA_FACCAO"
FILA_DE_PRODUCAO = "FILA_DE_PRODUCAO"
EM_PRODUCAO = "EM_PRODUCAO"
PRONTO = "PRONTO"
EM_TRANSITO_PARA_MARCA = "EM_TRANSITO_PARA_MARCA"
EM_REVISAO = "EM_REVISAO"
PARCIALMENTE_APROVADO = "PARCIALMENTE_APROVADO"
REPROVADO = "REPROVADO"
AGUARDANDO_RETRABALHO = "AGUARDANDO_RETRABALHO"
FINALIZADO = "FINALIZADO"
CANCELADO = "CANCELADO"

ALL_STATUSES: Tuple[str, ...] = (
    LANCADO_PELA_MARCA,
    DISPONIVEL_PARA_OUTRAS,
    ACEITO_PELA_FACCAO,
    EM_PREPARACAO_SAIDA_MARCA,
    EM_TRANSITO_PARA_FACCAO,
    EM_PREPARACAO_ENTRADA_FACCAO,
    FILA_DE_PRODUCAO,
    EM_PRODUCAO,
    PRONTO,
    EM_TRANSITO_PARA_MARCA,
    EM_REVISAO,
    PARCIALMENTE_APROVADO,
    REPROVADO,
    AGUARDANDO_RETRABALHO,
    FINALIZADO,
    CANCELADO,
)

TERMINAL_STATUSES: FrozenSet[str] = frozenset({FINALIZADO, CANCELADO})

# Statuses reached after a supplier accepted and before the brand concluded a review.
IN_FLIGHT_STATUSES: Tuple[str, ...] = (
    ACEITO_PELA_FACCAO,
    EM_PREPARACAO_SAIDA_MARCA,
    EM_TRANSITO_PARA_FACCAO,
    EM_PREPARACAO_ENTRADA_FACCAO,
    FILA_DE_PRODUCAO,
    EM_PRODUCAO,
    PRONTO,
    EM_TRANSITO_PARA_MARCA,
)

REWORKABLE_STATUSES: FrozenSet[str] = frozenset({PARCIALMENTE_APROVADO, REPROVADO, AGUARDANDO_RETRABALHO})

REVIEW_RESULT_STATUS: Dict[str, str] = {
    RESULT_APPROVED: FINALIZADO,
    RESULT_PARTIAL: PARCIALMENTE_APROVADO,
    RESULT_REJECTED: REPROVADO,
}
