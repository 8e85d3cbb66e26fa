from __future__ import annotations

from typing import Dict, List


ORDER_STATUS_ITEMS: List[Dict[str, str]] = [
    {
        "key": "LANCADO_PELA_MARCA",
        "label": "Lancado pela marca",
        "description": "Pedido publicado e aguardando resposta da faccao.",
    },
    {
        "key": "DISPONIVEL_PARA_OUTRAS",
        "label": "Disponivel para outras faccoes",
        "description": "Pedido recusado pelo destinatario e aberto ao mercado.",
    },
    {
        "key": "ACEITO_PELA_FACCAO",
        "label": "Aceito pela faccao",
        "description": "Faccao confirmou o pedido.",
    },
    {
        "key": "EM_PREPARACAO_SAIDA_MARCA",
        "label": "Preparando insumos",
        "description": "Marca separando os insumos para envio.",
    },
    {
        "key": "EM_TRANSITO_PARA_FACCAO",
        "label": "Insumos em transito",
        "description": "Insumos a caminho da faccao.",
    },
    {
        "key": "EM_PREPARACAO_ENTRADA_FACCAO",
        "label": "Conferindo insumos",
        "description": "Faccao recebeu e confere os insumos.",
    },
    {
        "key": "FILA_DE_PRODUCAO",
        "label": "Fila de producao",
        "description": "Pedido aguardando inicio da producao.",
    },
    {
        "key": "EM_PRODUCAO",
        "label": "Em producao",
        "description": "Pecas em producao na faccao.",
    },
    {
        "key": "PRONTO",
        "label": "Pronto",
        "description": "Producao concluida, aguardando despacho.",
    },
    {
        "key": "EM_TRANSITO_PARA_MARCA",
        "label": "Em transito para a marca",
        "description": "Pecas despachadas para a marca.",
    },
    {
        "key": "EM_REVISAO",
        "label": "Em revisao",
        "description": "Marca conferindo a qualidade das pecas.",
    },
    {
        "key": "PARCIALMENTE_APROVADO",
        "label": "Parcialmente aprovado",
        "description": "Parte das pecas foi reprovada ou enviada para segunda qualidade.",
    },
    {
        "key": "REPROVADO",
        "label": "Reprovado",
        "description": "Nenhuma peca foi aprovada na revisao.",
    },
    {
        "key": "AGUARDANDO_RETRABALHO",
        "label": "Aguardando retrabalho",
        "description": "Pedido vinculado a um retrabalho em andamento.",
    },
    {
        "key": "FINALIZADO",
        "label": "Finalizado",
        "description": "Pedido encerrado com aprovacao total.",
    },
    {
        "key": "CANCELADO",
        "label": "Cancelado",
        "description": "Pedido encerrado sem continuidade.",
    },
]


MESSAGES: Dict[str, Dict[str, str]] = {
    "error": {
        "unexpected_error": "Nao foi possivel concluir a operacao. Tente novamente.",
        "action_invalid": "Acao invalida para o pedido.",
        "validation_error": "Dados invalidos. Revise os campos e tente novamente.",
        "permission_denied": "Voce nao tem permissao para esta acao.",
        "not_found": "Registro nao encontrado.",
        "invalid_transition": "Transicao de status nao permitida para este pedido.",
        "conflict": "O pedido foi alterado por outra operacao. Recarregue e tente novamente.",
        "brand_membership_required": "Apenas membros de uma marca podem criar pedidos.",
        "supplier_required": "Pedidos diretos exigem uma faccao definida.",
        "target_suppliers_required": "Pedidos por licitacao exigem ao menos uma faccao convidada.",
        "assignment_type_invalid": "Tipo de atribuicao invalido.",
        "quantity_invalid": "Quantidade deve ser maior que zero.",
        "price_invalid": "Preco por peca deve ser maior que zero.",
        "product_required": "Informe o tipo e o nome do produto.",
        "order_not_accessible": "Voce nao tem acesso a este pedido.",
        "review_required": "Use o registro de revisao para concluir esta etapa.",
        "rework_required": "Use a criacao de retrabalho para concluir esta etapa.",
        "review_quantities_mismatch": "Aprovadas, reprovadas e segunda qualidade devem somar o total revisado.",
        "review_type_invalid": "Tipo de revisao invalido.",
        "discount_invalid": "Desconto deve estar entre 0 e 100.",
        "items_required": "Informe ao menos um item.",
        "rework_not_allowed": "Retrabalho so pode ser criado para pedidos reprovados ou parcialmente aprovados.",
        "permission_unknown": "Permissao desconhecida.",
        "membership_not_found": "Usuario nao pertence a esta empresa.",
    },
    "history": {
        "order_created": "Pedido criado",
        "rework_created": "Pedido de retrabalho criado a partir de {parent}",
        "parent_rework": "Retrabalho {child} criado",
        "review_done": "Revisao concluida: {result}",
        "order_accepted": "Pedido aceito pela faccao",
        "order_rejected": "Pedido recusado pela faccao",
    },
}


def status_keys() -> List[str]:
    return [item["key"] for item in ORDER_STATUS_ITEMS]


def build_status_labels() -> Dict[str, str]:
    return {item["key"]: item["label"] for item in ORDER_STATUS_ITEMS}


def build_status_descriptions() -> Dict[str, str]:
    return {item["key"]: item["description"] for item in ORDER_STATUS_ITEMS}


STATUS_LABELS = build_status_labels()
STATUS_DESCRIPTIONS = build_status_descriptions()


def status_label(status: str | None) -> str:
    return STATUS_LABELS.get(str(status or ""), str(status or ""))


def status_description(status: str | None) -> str:
    return STATUS_DESCRIPTIONS.get(str(status or ""), "")


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def history_note(key: str, **values: object) -> str:
    template = get_message("history", key)
    return template.format(**values) if values else template
