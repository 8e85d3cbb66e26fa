from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple

from texlink.core import DomainEvent, EventBus
from texlink.domain.contracts import (
    ChildOrderInput,
    OrderCreateInput,
    ReviewInput,
    SecondQualityItemInput,
    StatusUpdateInput,
)
from texlink.domain.models import BRAND, SUPPLIER, CompanyMembership, Order, OrderReview, SecondQualityItem
from texlink.errors import ConflictError, DuplicateKeyError, NotFoundError
from texlink.infrastructure.repositories import CompanyRepository, OrderRepository
from texlink.orders import events as order_events
from texlink.orders.access import OrderAccess, resolve_brand_access, resolve_order_access
from texlink.orders.display_ids import make_generator
from texlink.orders.factory import OrderFactory
from texlink.orders.pricing import DEFAULT_PLATFORM_FEE_RATE
from texlink.orders.review import ReviewEngine
from texlink.orders.rework import ReworkFactory
from texlink.orders.state_machine import OrderStateMachine
from texlink.permissions.resolver import has_permission
from texlink.permissions.role_permissions import (
    ORDERS_ACCEPT_REJECT,
    ORDERS_CREATE,
    ORDERS_UPDATE_STATUS,
    ORDERS_VIEW,
)
from texlink.policies import require_permissions


logger = logging.getLogger("texlink.orders")


def _config_value(config: Any, key: str, default: Any) -> Any:
    if isinstance(config, Mapping):
        return config.get(key, default)
    return getattr(config, key, default)


class OrdersService:
    """Application facade for the order lifecycle.

    Each mutating call resolves the acting party, checks the member's
    permissions, runs the domain operation against a freshly loaded
    aggregate inside one transaction and publishes the resulting domain
    events only after the commit.
    """

    def __init__(
        self,
        *,
        order_repository: OrderRepository | None = None,
        company_repository: CompanyRepository | None = None,
        event_bus: EventBus | None = None,
        factory: OrderFactory | None = None,
        state_machine: OrderStateMachine | None = None,
        review_engine: ReviewEngine | None = None,
        rework_factory: ReworkFactory | None = None,
        permissions_enforced: bool = True,
        display_id_max_attempts: int = 5,
        rework_max_attempts: int = 3,
    ) -> None:
        self.order_repository = order_repository or OrderRepository()
        self.company_repository = company_repository or CompanyRepository()
        self.event_bus = event_bus or EventBus()
        self.state_machine = state_machine or OrderStateMachine()
        self.factory = factory or OrderFactory(clock=self.state_machine.clock)
        self.review_engine = review_engine or ReviewEngine(self.state_machine)
        self.rework_factory = rework_factory or ReworkFactory(self.state_machine)
        self.permissions_enforced = bool(permissions_enforced)
        self.display_id_max_attempts = max(1, int(display_id_max_attempts))
        self.rework_max_attempts = max(1, int(rework_max_attempts))

    @classmethod
    def from_config(cls, config: Any, **overrides: Any) -> "OrdersService":
        state_machine = overrides.pop("state_machine", None) or OrderStateMachine()
        factory = OrderFactory(
            fee_rate=Decimal(str(_config_value(config, "PLATFORM_FEE_RATE", DEFAULT_PLATFORM_FEE_RATE))),
            display_id_generator=make_generator(str(_config_value(config, "DISPLAY_ID_PREFIX", "TX"))),
            clock=state_machine.clock,
        )
        rework_factory = ReworkFactory(
            state_machine,
            default_deadline_days=int(_config_value(config, "REWORK_DEFAULT_DEADLINE_DAYS", 14)),
        )
        options: Dict[str, Any] = {
            "state_machine": state_machine,
            "factory": factory,
            "rework_factory": rework_factory,
            "permissions_enforced": bool(_config_value(config, "ORDER_PERMISSIONS_ENFORCED", True)),
            "display_id_max_attempts": int(_config_value(config, "DISPLAY_ID_MAX_ATTEMPTS", 5)),
            "rework_max_attempts": int(_config_value(config, "REWORK_MAX_ATTEMPTS", 3)),
        }
        options.update(overrides)
        return cls(**options)

    def _publish(self, events: List[DomainEvent]) -> None:
        self.event_bus.publish_all(events)

    def _require(self, membership: CompanyMembership, *permissions: str) -> None:
        if self.permissions_enforced:
            require_permissions(membership, *permissions)

    def _load(self, db, order_id: str) -> Order:
        order = self.order_repository.get(db, order_id)
        if order is None:
            raise NotFoundError(details=f"Pedido {order_id} nao encontrado", payload={"order_id": order_id})
        return order

    def _access(self, db, order: Order, actor_id: str, *permissions: str) -> OrderAccess:
        access = resolve_order_access(order, self.company_repository.get_memberships(db, actor_id))
        self._require(access.membership, *permissions)
        return access

    def _mutate(
        self,
        db,
        *,
        order_id: str,
        actor_id: str,
        permission: str,
        action: Callable[[Order, OrderAccess], Tuple[Any, List[DomainEvent]]],
    ) -> Tuple[Order, Any]:
        with db.transaction():
            order = self._load(db, order_id)
            access = self._access(db, order, actor_id, permission)
            result, events = action(order, access)
            self.order_repository.save(db, order)
        self._publish(events)
        return order, result

    def create_order(self, db, *, actor_id: str, create_input: OrderCreateInput) -> Order:
        attempt = 0
        while True:
            attempt += 1
            try:
                with db.transaction():
                    access = resolve_brand_access(self.company_repository.get_memberships(db, actor_id))
                    self._require(access.membership, ORDERS_CREATE)
                    order = self.factory.create(access.actor, create_input)
                    self.order_repository.save(db, order)
                break
            except DuplicateKeyError as exc:
                if attempt >= self.display_id_max_attempts:
                    raise ConflictError(
                        code="display_id_conflict",
                        details=f"display_id em conflito apos {attempt} tentativas",
                    ) from exc
                logger.warning("order_display_id_collision", extra={"attempt": attempt, "actor_id": actor_id})

        self._publish([order_events.order_created(order)])
        logger.info(
            "order_created",
            extra={
                "order_id": order.id,
                "display_id": order.display_id,
                "brand_id": order.brand_id,
                "assignment_type": order.assignment_type,
                "actor_id": actor_id,
            },
        )
        return order

    def accept_order(self, db, *, order_id: str, actor_id: str) -> Order:
        order, _ = self._mutate(
            db,
            order_id=order_id,
            actor_id=actor_id,
            permission=ORDERS_ACCEPT_REJECT,
            action=lambda current, access: (None, self.state_machine.accept(current, access.actor)),
        )
        logger.info(
            "order_accepted",
            extra={"order_id": order.id, "supplier_id": order.supplier_id, "actor_id": actor_id},
        )
        return order

    def reject_order(self, db, *, order_id: str, actor_id: str, reason: str | None = None) -> Order:
        order, _ = self._mutate(
            db,
            order_id=order_id,
            actor_id=actor_id,
            permission=ORDERS_ACCEPT_REJECT,
            action=lambda current, access: (None, self.state_machine.reject(current, access.actor, reason)),
        )
        logger.info(
            "order_rejected",
            extra={"order_id": order.id, "order_status": order.status, "actor_id": actor_id},
        )
        return order

    def update_status(self, db, *, order_id: str, actor_id: str, status_input: StatusUpdateInput) -> Order:
        order, _ = self._mutate(
            db,
            order_id=order_id,
            actor_id=actor_id,
            permission=ORDERS_UPDATE_STATUS,
            action=lambda current, access: (None, self.state_machine.update_status(current, access.actor, status_input)),
        )
        logger.info(
            "order_status_changed",
            extra={"order_id": order.id, "order_status": order.status, "actor_id": actor_id},
        )
        return order

    def get_available_transitions(self, db, *, order_id: str, actor_id: str) -> Dict[str, object]:
        order = self._load(db, order_id)
        access = self._access(db, order, actor_id, ORDERS_VIEW)
        return self.state_machine.available_transitions(order, access.actor)

    def create_review(self, db, *, order_id: str, actor_id: str, review_input: ReviewInput) -> OrderReview:
        def _action(order: Order, access: OrderAccess):
            outcome = self.review_engine.create_review(order, access.actor, review_input)
            self.order_repository.insert_review(db, outcome.review)
            self.order_repository.insert_second_quality_items(db, outcome.second_quality_items)
            return outcome.review, outcome.events

        order, review = self._mutate(
            db,
            order_id=order_id,
            actor_id=actor_id,
            permission=ORDERS_UPDATE_STATUS,
            action=_action,
        )
        logger.info(
            "order_review_created",
            extra={
                "order_id": order.id,
                "review_id": review.id,
                "review_result": review.result,
                "order_status": order.status,
                "actor_id": actor_id,
            },
        )
        return review

    def add_second_quality_items(
        self,
        db,
        *,
        order_id: str,
        actor_id: str,
        items: List[SecondQualityItemInput],
    ) -> List[SecondQualityItem]:
        def _action(order: Order, access: OrderAccess):
            created = self.review_engine.add_second_quality_items(order, access.actor, items)
            self.order_repository.insert_second_quality_items(db, created)
            return created, []

        order, created = self._mutate(
            db,
            order_id=order_id,
            actor_id=actor_id,
            permission=ORDERS_UPDATE_STATUS,
            action=_action,
        )
        logger.info(
            "order_second_quality_added",
            extra={"order_id": order.id, "items": len(created), "actor_id": actor_id},
        )
        return created

    def create_child_order(
        self,
        db,
        *,
        parent_order_id: str,
        actor_id: str,
        child_input: ChildOrderInput | None = None,
    ) -> Order:
        child_input = child_input or ChildOrderInput()
        attempt = 0
        while True:
            attempt += 1
            try:
                with db.transaction():
                    parent = self._load(db, parent_order_id)
                    access = self._access(db, parent, actor_id, ORDERS_CREATE)
                    latest_review = self.order_repository.latest_review(db, parent.id)
                    outcome = self.rework_factory.create_child(
                        parent,
                        access.actor,
                        child_input,
                        latest_review=latest_review,
                    )
                    self.order_repository.save(db, outcome.child)
                    self.order_repository.save(db, parent)
                break
            except ConflictError:
                if attempt >= self.rework_max_attempts:
                    raise
                logger.warning(
                    "order_rework_conflict",
                    extra={"parent_order_id": parent_order_id, "attempt": attempt, "actor_id": actor_id},
                )

        self._publish(outcome.events)
        logger.info(
            "order_rework_created",
            extra={
                "order_id": outcome.child.id,
                "display_id": outcome.child.display_id,
                "parent_order_id": parent_order_id,
                "revision_number": outcome.child.revision_number,
                "actor_id": actor_id,
            },
        )
        return outcome.child

    def get_order(self, db, *, order_id: str, actor_id: str) -> Dict[str, Any]:
        order = self._load(db, order_id)
        access = self._access(db, order, actor_id, ORDERS_VIEW)
        return order.to_dict(party=access.actor.party)

    def list_orders(self, db, *, actor_id: str, party: str | None = None, status: str | None = None) -> List[Dict[str, Any]]:
        memberships = [
            membership
            for membership in self.company_repository.get_memberships(db, actor_id)
            if membership.is_active and (not self.permissions_enforced or has_permission(membership, ORDERS_VIEW))
        ]
        brand_ids = [m.company_id for m in memberships if m.company_type == BRAND and party in (None, BRAND)]
        supplier_ids = [m.company_id for m in memberships if m.company_type == SUPPLIER and party in (None, SUPPLIER)]

        order_ids = self.order_repository.list_order_ids(
            db,
            brand_ids=brand_ids,
            supplier_ids=supplier_ids,
            include_open_market=bool(supplier_ids),
            status=status,
        )
        payload: List[Dict[str, Any]] = []
        for order_id in order_ids:
            order = self._load(db, order_id)
            access = resolve_order_access(order, memberships)
            payload.append(order.to_dict(party=access.actor.party))
        return payload

    def get_order_reviews(self, db, *, order_id: str, actor_id: str) -> List[OrderReview]:
        order = self._load(db, order_id)
        self._access(db, order, actor_id, ORDERS_VIEW)
        return self.order_repository.list_reviews(db, order.id)

    def get_second_quality_items(self, db, *, order_id: str, actor_id: str) -> List[SecondQualityItem]:
        order = self._load(db, order_id)
        self._access(db, order, actor_id, ORDERS_VIEW)
        return self.order_repository.list_second_quality_items(db, order.id)

    def get_order_hierarchy(self, db, *, order_id: str, actor_id: str) -> Dict[str, Any]:
        order = self._load(db, order_id)
        access = self._access(db, order, actor_id, ORDERS_VIEW)

        parent = self.order_repository.get_ref(db, order.parent_order_id) if order.parent_order_id else None
        root_id = self.order_repository.find_root_id(db, order.id)
        root = self.order_repository.get_ref(db, root_id) if root_id != order.id else None
        return {
            "current": order.to_dict(party=access.actor.party),
            "parent": parent.to_dict() if parent else None,
            "children": [child.to_dict() for child in order.child_orders],
            "root": root.to_dict() if root else None,
        }
