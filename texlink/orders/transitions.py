from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from texlink.domain.models import BRAND, HYBRID, SUPPLIER, TARGET_PENDING, Actor, Order
from texlink.errors import InvalidTransitionError, PermissionError
from texlink.orders import statuses as st


OP_STATUS = "status"
OP_ACCEPT = "accept"
OP_REJECT = "reject"
OP_REVIEW = "review"
OP_REWORK = "rework"

OrderGuard = Callable[[Order], bool]
ActorGuard = Callable[[Order, Actor], bool]


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    parties: Tuple[str, ...]
    label: str
    description: str
    operation: str = OP_STATUS
    guard: OrderGuard | None = None
    actor_guard: ActorGuard | None = None
    waiting_label: str = ""
    requires_confirmation: bool = True
    requires_notes: bool = False
    advances: bool = True
    listed: bool = True

    @property
    def requires_review(self) -> bool:
        return self.operation == OP_REVIEW

    @property
    def waiting_for(self) -> str:
        return self.parties[0]

    def is_open(self, order: Order) -> bool:
        return self.guard is None or bool(self.guard(order))

    def allows(self, order: Order, actor: Actor) -> bool:
        if actor.party not in self.parties:
            return False
        # Once assigned, only the assigned supplier moves the production flow.
        if actor.party == SUPPLIER and self.operation == OP_STATUS and order.supplier_id != actor.company_id:
            return False
        return self.actor_guard is None or bool(self.actor_guard(order, actor))

    def to_dict(self) -> Dict[str, object]:
        return {
            "next_status": self.target,
            "label": self.label,
            "description": self.description,
            "requires_confirmation": self.requires_confirmation,
            "requires_notes": self.requires_notes,
            "requires_review": self.requires_review,
        }


def _materials(order: Order) -> bool:
    return bool(order.materials_provided)


def _no_materials(order: Order) -> bool:
    return not order.materials_provided


def _is_open_market(order: Order) -> bool:
    return order.assignment_type == HYBRID and not order.supplier_id


def _is_pending_target(order: Order, company_id: str) -> bool:
    target = order.target_for(company_id)
    return target is not None and target.status == TARGET_PENDING


def can_accept(order: Order, actor: Actor) -> bool:
    if actor.party != SUPPLIER:
        return False
    if order.status == st.DISPONIVEL_PARA_OUTRAS:
        return True
    if order.status == st.AGUARDANDO_RETRABALHO:
        return bool(order.supplier_id) and order.supplier_id == actor.company_id
    if order.status != st.LANCADO_PELA_MARCA:
        return False
    if order.supplier_id and order.supplier_id == actor.company_id:
        return True
    return _is_pending_target(order, actor.company_id) or _is_open_market(order)


def can_reject(order: Order, actor: Actor) -> bool:
    if actor.party != SUPPLIER or order.status != st.LANCADO_PELA_MARCA:
        return False
    if order.supplier_id and order.supplier_id == actor.company_id:
        return True
    return _is_pending_target(order, actor.company_id)


def _awaiting_own_rework(order: Order) -> bool:
    return order.is_rework and not order.has_children


def _has_rework_children(order: Order) -> bool:
    return order.has_children


def _review_transitions(source: str, *, listed: bool) -> List[Transition]:
    waiting = "Marca revisando qualidade" if listed else ""
    return [
        Transition(
            source,
            st.FINALIZADO,
            (BRAND,),
            "Aprovar Totalmente",
            "Aprovar 100% do pedido e finalizar",
            operation=OP_REVIEW,
            waiting_label=waiting,
            advances=listed,
            listed=listed,
        ),
        Transition(
            source,
            st.PARCIALMENTE_APROVADO,
            (BRAND,),
            "Aprovacao Parcial",
            "Aprovar parcialmente com itens rejeitados ou segunda qualidade",
            operation=OP_REVIEW,
            waiting_label=waiting,
            requires_notes=True,
            advances=listed,
            listed=listed,
        ),
        Transition(
            source,
            st.REPROVADO,
            (BRAND,),
            "Reprovar",
            "Reprovar o pedido por problemas de qualidade",
            operation=OP_REVIEW,
            waiting_label=waiting,
            requires_notes=True,
            advances=listed,
            listed=listed,
        ),
    ]


def _rework_transition(source: str, *, guard: OrderGuard | None = None, advances: bool = True) -> Transition:
    return Transition(
        source,
        st.AGUARDANDO_RETRABALHO,
        (BRAND,),
        "Solicitar Retrabalho",
        "Criar pedido de retrabalho para as pecas reprovadas",
        operation=OP_REWORK,
        guard=guard,
        waiting_label="Aguardando a Marca decidir sobre o retrabalho",
        advances=advances,
    )


def _cancel_transition(source: str) -> Transition:
    return Transition(
        source,
        st.CANCELADO,
        (BRAND,),
        "Cancelar Pedido",
        "Encerrar o pedido sem continuidade",
        requires_notes=True,
        advances=False,
    )


def _build_flow() -> Dict[str, List[Transition]]:
    flow: Dict[str, List[Transition]] = {
        st.LANCADO_PELA_MARCA: [
            Transition(
                st.LANCADO_PELA_MARCA,
                st.ACEITO_PELA_FACCAO,
                (SUPPLIER,),
                "Aceitar Pedido",
                "Aceitar este pedido e iniciar o fluxo de producao",
                operation=OP_ACCEPT,
                actor_guard=can_accept,
                waiting_label="Aguardando a Faccao aceitar o pedido",
            ),
            Transition(
                st.LANCADO_PELA_MARCA,
                st.DISPONIVEL_PARA_OUTRAS,
                (SUPPLIER,),
                "Recusar Pedido",
                "Recusar este pedido e liberar para outras faccoes",
                operation=OP_REJECT,
                actor_guard=can_reject,
                requires_notes=True,
                advances=False,
            ),
        ],
        st.DISPONIVEL_PARA_OUTRAS: [
            Transition(
                st.DISPONIVEL_PARA_OUTRAS,
                st.ACEITO_PELA_FACCAO,
                (SUPPLIER,),
                "Aceitar Pedido",
                "Assumir este pedido disponivel no mercado",
                operation=OP_ACCEPT,
                actor_guard=can_accept,
                waiting_label="Aguardando uma Faccao assumir o pedido",
            ),
        ],
        st.ACEITO_PELA_FACCAO: [
            Transition(
                st.ACEITO_PELA_FACCAO,
                st.EM_PREPARACAO_SAIDA_MARCA,
                (BRAND,),
                "Preparar Insumos",
                "Iniciar preparacao dos insumos para envio a faccao",
                guard=_materials,
                waiting_label="Aguardando a Marca preparar insumos",
            ),
            Transition(
                st.ACEITO_PELA_FACCAO,
                st.FILA_DE_PRODUCAO,
                (SUPPLIER,),
                "Enviar para Fila",
                "Colocar o pedido na fila de producao sem aguardar insumos da marca",
                guard=_no_materials,
                waiting_label="Aguardando a Faccao iniciar producao",
            ),
        ],
        st.EM_PREPARACAO_SAIDA_MARCA: [
            Transition(
                st.EM_PREPARACAO_SAIDA_MARCA,
                st.EM_TRANSITO_PARA_FACCAO,
                (BRAND,),
                "Despachar Insumos",
                "Confirmar que os insumos foram despachados para a faccao",
                requires_notes=True,
                waiting_label="Marca preparando insumos para envio",
            ),
        ],
        st.EM_TRANSITO_PARA_FACCAO: [
            Transition(
                st.EM_TRANSITO_PARA_FACCAO,
                st.EM_PREPARACAO_ENTRADA_FACCAO,
                (SUPPLIER,),
                "Confirmar Recebimento",
                "Confirmar que os insumos foram recebidos na faccao",
                waiting_label="Aguardando a Faccao confirmar recebimento",
            ),
        ],
        st.EM_PREPARACAO_ENTRADA_FACCAO: [
            Transition(
                st.EM_PREPARACAO_ENTRADA_FACCAO,
                st.EM_PRODUCAO,
                (SUPPLIER,),
                "Iniciar Producao",
                "Iniciar a producao apos conferencia dos insumos",
                waiting_label="Faccao conferindo insumos recebidos",
            ),
        ],
        st.FILA_DE_PRODUCAO: [
            Transition(
                st.FILA_DE_PRODUCAO,
                st.EM_PRODUCAO,
                (SUPPLIER,),
                "Iniciar Producao",
                "Retirar o pedido da fila e iniciar a producao",
                waiting_label="Pedido na fila de producao da Faccao",
            ),
        ],
        st.EM_PRODUCAO: [
            Transition(
                st.EM_PRODUCAO,
                st.PRONTO,
                (SUPPLIER,),
                "Producao Concluida",
                "Marcar a producao como concluida e pronta para envio",
                waiting_label="Faccao em producao",
            ),
        ],
        st.PRONTO: [
            Transition(
                st.PRONTO,
                st.EM_TRANSITO_PARA_MARCA,
                (BRAND, SUPPLIER),
                "Marcar Despacho",
                "Confirmar que o pedido foi despachado para a marca",
                requires_notes=True,
                waiting_label="Pronto para despacho",
            ),
        ],
        st.EM_TRANSITO_PARA_MARCA: [
            Transition(
                st.EM_TRANSITO_PARA_MARCA,
                st.EM_REVISAO,
                (BRAND,),
                "Confirmar Recebimento",
                "Confirmar que o pedido foi recebido e iniciar revisao de qualidade",
                waiting_label="Aguardando a Marca confirmar recebimento",
            ),
        ],
        st.EM_REVISAO: _review_transitions(st.EM_REVISAO, listed=True),
        st.PARCIALMENTE_APROVADO: [_rework_transition(st.PARCIALMENTE_APROVADO)],
        st.REPROVADO: [_rework_transition(st.REPROVADO)],
        st.AGUARDANDO_RETRABALHO: [
            Transition(
                st.AGUARDANDO_RETRABALHO,
                st.ACEITO_PELA_FACCAO,
                (SUPPLIER,),
                "Aceitar Retrabalho",
                "Aceitar o pedido de retrabalho e retomar a producao",
                operation=OP_ACCEPT,
                guard=_awaiting_own_rework,
                actor_guard=can_accept,
                waiting_label="Aguardando a Faccao aceitar o retrabalho",
            ),
            _rework_transition(st.AGUARDANDO_RETRABALHO, guard=_has_rework_children, advances=False),
        ],
    }

    # Early inspection: the brand may record a review pass at any point after acceptance.
    for status in st.IN_FLIGHT_STATUSES:
        flow[status] = flow[status] + _review_transitions(status, listed=False)

    for status in st.ALL_STATUSES:
        if status in st.TERMINAL_STATUSES:
            flow.setdefault(status, [])
            continue
        flow[status] = flow.get(status, []) + [_cancel_transition(status)]
    return flow


ORDER_FLOW: Dict[str, List[Transition]] = _build_flow()


def transitions_from(status: str) -> List[Transition]:
    return list(ORDER_FLOW.get(status, []))


def resolve_transition(order: Order, actor: Actor, target: str) -> Transition:
    """Return the table entry that lets ``actor`` move ``order`` to ``target``.

    Raises ``InvalidTransitionError`` when no one can take that step from the
    current status and ``PermissionError`` when someone can, but not this actor.
    """
    candidates = [transition for transition in ORDER_FLOW.get(order.status, []) if transition.target == target]
    open_candidates = [transition for transition in candidates if transition.is_open(order)]
    if not open_candidates:
        raise InvalidTransitionError(
            details=f"Transicao invalida: {order.status} -> {target}",
            payload={"current_status": order.status, "target_status": target},
        )
    for transition in open_candidates:
        if transition.allows(order, actor):
            return transition
    raise PermissionError(
        details=f"Sem permissao para avancar de {order.status} para {target}",
        payload={"current_status": order.status, "target_status": target},
    )


def available_transitions(order: Order, actor: Actor) -> Dict[str, object]:
    open_transitions = [transition for transition in ORDER_FLOW.get(order.status, []) if transition.is_open(order)]
    mine = [transition for transition in open_transitions if transition.allows(order, actor)]
    can_advance = any(transition.advances for transition in mine)

    waiting_for = None
    waiting_label = ""
    if not can_advance:
        pending = next((transition for transition in open_transitions if transition.advances), None)
        if pending is not None:
            waiting_for = pending.waiting_for
            waiting_label = pending.waiting_label
        elif order.status == st.AGUARDANDO_RETRABALHO:
            waiting_for = SUPPLIER
            waiting_label = "Aguardando conclusao do retrabalho"

    return {
        "can_advance": can_advance,
        "transitions": [transition.to_dict() for transition in mine if transition.listed],
        "waiting_for": waiting_for,
        "waiting_label": waiting_label,
    }
