from __future__ import annotations

from typing import Dict, FrozenSet, List, Tuple


ORDERS_VIEW = "ORDERS_VIEW"
ORDERS_CREATE = "ORDERS_CREATE"
ORDERS_EDIT = "ORDERS_EDIT"
ORDERS_DELETE = "ORDERS_DELETE"
ORDERS_ACCEPT_REJECT = "ORDERS_ACCEPT_REJECT"
ORDERS_UPDATE_STATUS = "ORDERS_UPDATE_STATUS"
SUPPLIERS_VIEW = "SUPPLIERS_VIEW"
SUPPLIERS_ADD = "SUPPLIERS_ADD"
SUPPLIERS_REMOVE = "SUPPLIERS_REMOVE"
SUPPLIERS_RATE = "SUPPLIERS_RATE"
FINANCIAL_VIEW = "FINANCIAL_VIEW"
FINANCIAL_MANAGE = "FINANCIAL_MANAGE"
FINANCIAL_EXPORT = "FINANCIAL_EXPORT"
MESSAGES_VIEW = "MESSAGES_VIEW"
MESSAGES_SEND = "MESSAGES_SEND"
REPORTS_VIEW = "REPORTS_VIEW"
REPORTS_EXPORT = "REPORTS_EXPORT"
TEAM_VIEW = "TEAM_VIEW"
TEAM_INVITE = "TEAM_INVITE"
TEAM_MANAGE = "TEAM_MANAGE"
TEAM_MANAGE_PERMISSIONS = "TEAM_MANAGE_PERMISSIONS"
SETTINGS_VIEW = "SETTINGS_VIEW"
SETTINGS_EDIT = "SETTINGS_EDIT"
CAPACITY_VIEW = "CAPACITY_VIEW"
CAPACITY_MANAGE = "CAPACITY_MANAGE"


PERMISSION_NAMES: Dict[str, str] = {
    ORDERS_VIEW: "Ver Pedidos",
    ORDERS_CREATE: "Criar Pedidos",
    ORDERS_EDIT: "Editar Pedidos",
    ORDERS_DELETE: "Excluir Pedidos",
    ORDERS_ACCEPT_REJECT: "Aceitar/Rejeitar Pedidos",
    ORDERS_UPDATE_STATUS: "Atualizar Status de Pedidos",
    SUPPLIERS_VIEW: "Ver Fornecedores",
    SUPPLIERS_ADD: "Adicionar Fornecedores",
    SUPPLIERS_REMOVE: "Remover Fornecedores",
    SUPPLIERS_RATE: "Avaliar Fornecedores",
    FINANCIAL_VIEW: "Ver Financeiro",
    FINANCIAL_MANAGE: "Gerenciar Financeiro",
    FINANCIAL_EXPORT: "Exportar Dados Financeiros",
    MESSAGES_VIEW: "Ver Mensagens",
    MESSAGES_SEND: "Enviar Mensagens",
    REPORTS_VIEW: "Ver Relatorios",
    REPORTS_EXPORT: "Exportar Relatorios",
    TEAM_VIEW: "Ver Equipe",
    TEAM_INVITE: "Convidar Membros",
    TEAM_MANAGE: "Gerenciar Equipe",
    TEAM_MANAGE_PERMISSIONS: "Gerenciar Permissoes",
    SETTINGS_VIEW: "Ver Configuracoes",
    SETTINGS_EDIT: "Editar Configuracoes",
    CAPACITY_VIEW: "Ver Capacidade",
    CAPACITY_MANAGE: "Gerenciar Capacidade",
}

ALL_PERMISSIONS: Tuple[str, ...] = tuple(PERMISSION_NAMES)


ADMIN = "ADMIN"
OPERATIONS_MANAGER = "OPERATIONS_MANAGER"
FINANCIAL_MANAGER = "FINANCIAL_MANAGER"
SALES = "SALES"
PRODUCTION_MANAGER = "PRODUCTION_MANAGER"
VIEWER = "VIEWER"


ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    ADMIN: frozenset(ALL_PERMISSIONS),
    OPERATIONS_MANAGER: frozenset(
        {
            ORDERS_VIEW,
            ORDERS_CREATE,
            ORDERS_EDIT,
            ORDERS_UPDATE_STATUS,
            ORDERS_ACCEPT_REJECT,
            SUPPLIERS_VIEW,
            SUPPLIERS_ADD,
            SUPPLIERS_RATE,
            MESSAGES_VIEW,
            MESSAGES_SEND,
            REPORTS_VIEW,
            REPORTS_EXPORT,
            CAPACITY_VIEW,
            CAPACITY_MANAGE,
        }
    ),
    FINANCIAL_MANAGER: frozenset(
        {
            FINANCIAL_VIEW,
            FINANCIAL_MANAGE,
            FINANCIAL_EXPORT,
            REPORTS_VIEW,
            REPORTS_EXPORT,
            ORDERS_VIEW,
        }
    ),
    SALES: frozenset(
        {
            ORDERS_VIEW,
            ORDERS_CREATE,
            SUPPLIERS_VIEW,
            SUPPLIERS_ADD,
            MESSAGES_VIEW,
            MESSAGES_SEND,
            REPORTS_VIEW,
        }
    ),
    PRODUCTION_MANAGER: frozenset(
        {
            ORDERS_VIEW,
            ORDERS_ACCEPT_REJECT,
            ORDERS_UPDATE_STATUS,
            CAPACITY_VIEW,
            CAPACITY_MANAGE,
            MESSAGES_VIEW,
            MESSAGES_SEND,
            REPORTS_VIEW,
        }
    ),
    VIEWER: frozenset(
        {
            ORDERS_VIEW,
            SUPPLIERS_VIEW,
            FINANCIAL_VIEW,
            MESSAGES_VIEW,
            REPORTS_VIEW,
            CAPACITY_VIEW,
            TEAM_VIEW,
            SETTINGS_VIEW,
        }
    ),
}


ROLE_NAMES: Dict[str, str] = {
    ADMIN: "Administrador",
    OPERATIONS_MANAGER: "Gerente de Operacoes",
    FINANCIAL_MANAGER: "Gerente Financeiro",
    SALES: "Vendas/Comercial",
    PRODUCTION_MANAGER: "Gerente de Producao",
    VIEWER: "Visualizador",
}


ROLE_DESCRIPTIONS: Dict[str, str] = {
    ADMIN: "Acesso total a todas as funcionalidades e gestao de equipe",
    OPERATIONS_MANAGER: "Gerencia pedidos, fornecedores e operacoes do dia a dia",
    FINANCIAL_MANAGER: "Gerencia pagamentos, relatorios financeiros e exportacoes",
    SALES: "Cria pedidos, gerencia fornecedores e comunicacao",
    PRODUCTION_MANAGER: "Gerencia producao, capacidade e aceita pedidos (faccao)",
    VIEWER: "Apenas visualizacao, sem permissoes de edicao",
}


PERMISSION_CATEGORIES: Dict[str, Dict[str, object]] = {
    "orders": {
        "name": "Pedidos",
        "permissions": [
            ORDERS_VIEW,
            ORDERS_CREATE,
            ORDERS_EDIT,
            ORDERS_DELETE,
            ORDERS_ACCEPT_REJECT,
            ORDERS_UPDATE_STATUS,
        ],
    },
    "suppliers": {
        "name": "Fornecedores",
        "permissions": [SUPPLIERS_VIEW, SUPPLIERS_ADD, SUPPLIERS_REMOVE, SUPPLIERS_RATE],
    },
    "financial": {
        "name": "Financeiro",
        "permissions": [FINANCIAL_VIEW, FINANCIAL_MANAGE, FINANCIAL_EXPORT],
    },
    "messages": {
        "name": "Mensagens",
        "permissions": [MESSAGES_VIEW, MESSAGES_SEND],
    },
    "reports": {
        "name": "Relatorios",
        "permissions": [REPORTS_VIEW, REPORTS_EXPORT],
    },
    "team": {
        "name": "Equipe",
        "permissions": [TEAM_VIEW, TEAM_INVITE, TEAM_MANAGE, TEAM_MANAGE_PERMISSIONS],
    },
    "settings": {
        "name": "Configuracoes",
        "permissions": [SETTINGS_VIEW, SETTINGS_EDIT],
    },
    "capacity": {
        "name": "Capacidade",
        "permissions": [CAPACITY_VIEW, CAPACITY_MANAGE],
    },
}


def normalize_role(role: str | None, default: str = VIEWER) -> str:
    normalized = str(role or "").strip().upper()
    if normalized in ROLE_PERMISSIONS:
        return normalized
    return default


def is_known_permission(permission: str | None) -> bool:
    return permission in PERMISSION_NAMES


def role_info(role: str | None) -> Dict[str, object]:
    normalized = normalize_role(role)
    return {
        "role": normalized,
        "name": ROLE_NAMES[normalized],
        "description": ROLE_DESCRIPTIONS[normalized],
        "permissions": sorted(ROLE_PERMISSIONS[normalized]),
    }


def permission_categories() -> List[Dict[str, object]]:
    categories: List[Dict[str, object]] = []
    for key, meta in PERMISSION_CATEGORIES.items():
        categories.append(
            {
                "key": key,
                "name": meta["name"],
                "permissions": [
                    {"key": permission, "name": PERMISSION_NAMES[permission]}
                    for permission in meta["permissions"]
                ],
            }
        )
    return categories
