"""
Record store for categories, payments and items.

Exposes one named operation per query the application needs. Payment
deletion cascades to items; categories are referenced weakly and a dangling
category id reads as "no category".
"""

from ..config import SeedCategory
from ..logging import get_logger
from .backends import RecordBackend
from .records import (
    BalanceSummary,
    CategoryRecord,
    ItemRecord,
    PaymentRecord,
    PaymentWithItems,
    ResolvedItem,
    parse_timestamp,
    utc_now_iso,
)
from .tables import Table

logger = get_logger(__name__)


class RecordStore:
    def __init__(self, backend: RecordBackend):
        self.backend = backend
        self.categories: Table[CategoryRecord] = Table("categories", CategoryRecord, backend)
        self.payments: Table[PaymentRecord] = Table("payments", PaymentRecord, backend)
        self.items: Table[ItemRecord] = Table(
            "items", ItemRecord, backend, immutable_fields=("payment_id",)
        )

    def load(self) -> None:
        """Read every table from the backend."""
        self.categories.load()
        self.payments.load()
        self.items.load()
        logger.info(
            f"Loaded {len(self.categories)} categories, "
            f"{len(self.payments)} payments, {len(self.items)} items"
        )

    def seed_categories(self, seeds: list[SeedCategory]) -> int:
        """Insert the seed categories if there are none yet. Returns how many were added."""
        with self.categories.lock:
            if len(self.categories) > 0:
                return 0
            for seed in seeds:
                self.insert_category(
                    name=seed.name,
                    description=seed.description,
                    color=seed.color,
                    monthly_limit=seed.monthly_limit,
                )
        logger.info(f"Seeded {len(seeds)} default categories")
        return len(seeds)

    def close(self) -> None:
        self.backend.close()

    # Categories

    def insert_category(
        self, name: str, description: str | None, color: str, monthly_limit: int
    ) -> CategoryRecord:
        return self.categories.create(
            name=name,
            description=description or "",
            color=color,
            monthly_limit=monthly_limit,
            created_at=utc_now_iso(),
        )

    def update_category(
        self,
        category_id: int,
        name: str,
        description: str | None,
        color: str,
        monthly_limit: int,
    ) -> CategoryRecord | None:
        return self.categories.update(category_id, {
            "name": name,
            "description": description or "",
            "color": color,
            "monthly_limit": monthly_limit,
        })

    def delete_category(self, category_id: int) -> bool:
        """Delete a category. Items keep their (now dangling) reference."""
        return self.categories.delete(category_id)

    def get_category(self, category_id: int | None) -> CategoryRecord | None:
        if category_id is None:
            return None
        return self.categories.get(category_id)

    def list_categories(self) -> list[CategoryRecord]:
        """All categories ordered by name."""
        return sorted(self.categories.find_all(), key=lambda c: (c.name.casefold(), c.id))

    # Payments

    def insert_payment(
        self,
        total: int,
        paid_egor: int,
        paid_syoma: int,
        description: str | None,
        created_by: str,
        raw_qr: str | None = None,
        fns_payload: str | None = None,
    ) -> PaymentRecord:
        return self.payments.create(
            ts=utc_now_iso(),
            total=total,
            paid_egor=paid_egor,
            paid_syoma=paid_syoma,
            description=description,
            created_by=created_by,
            raw_qr=raw_qr,
            fns_payload=fns_payload,
        )

    def insert_payment_for_qr(
        self,
        raw_qr: str,
        total: int,
        paid_egor: int,
        paid_syoma: int,
        description: str | None,
        created_by: str,
        fns_payload: str | None = None,
    ) -> tuple[PaymentRecord, bool]:
        """
        Insert a scanned payment unless one with the same QR string exists.

        Returns the payment and whether it was created by this call.
        """
        with self.payments.lock:
            existing = self.find_payment_by_qr(raw_qr)
            if existing is not None:
                return existing, False
            payment = self.insert_payment(
                total=total,
                paid_egor=paid_egor,
                paid_syoma=paid_syoma,
                description=description,
                created_by=created_by,
                raw_qr=raw_qr,
                fns_payload=fns_payload,
            )
            return payment, True

    def update_payment_totals(
        self,
        payment_id: int,
        total: int,
        paid_egor: int,
        paid_syoma: int,
        description: str | None,
    ) -> PaymentRecord | None:
        return self.payments.update(payment_id, {
            "total": total,
            "paid_egor": paid_egor,
            "paid_syoma": paid_syoma,
            "description": description,
        })

    def delete_payment(self, payment_id: int) -> bool:
        """Delete a payment and all of its items."""
        with self.payments.lock, self.items.lock:
            deleted = self.payments.delete(payment_id)
            removed_items = self.items.delete_where(lambda i: i.payment_id == payment_id)
        if removed_items:
            logger.debug(f"Removed {len(removed_items)} items of payment {payment_id}")
        return deleted

    def get_payment(self, payment_id: int) -> PaymentRecord | None:
        return self.payments.get(payment_id)

    def find_payment_by_qr(self, raw_qr: str) -> PaymentRecord | None:
        return self.payments.find_one(lambda p: p.raw_qr == raw_qr)

    def list_payments_with_items(self) -> list[PaymentWithItems]:
        """Payments newest first, each with its items and their categories."""
        categories = {c.id: c for c in self.categories.find_all()}
        items_by_payment: dict[int, list[ResolvedItem]] = {}
        for item in self.items.find_all():
            category = categories.get(item.category_id) if item.category_id is not None else None
            items_by_payment.setdefault(item.payment_id, []).append(ResolvedItem(
                id=item.id,
                name=item.name,
                qty=item.qty,
                price=item.price,
                category_id=category.id if category else None,
                category_name=category.name if category else None,
                category_color=category.color if category else None,
            ))

        payments = sorted(
            self.payments.find_all(),
            key=lambda p: (parse_timestamp(p.ts), p.id),
            reverse=True,
        )
        return [
            PaymentWithItems(payment=p, items=items_by_payment.get(p.id, []))
            for p in payments
        ]

    # Items

    def insert_item(
        self,
        payment_id: int,
        name: str,
        qty: float,
        price: int,
        category_id: int | None = None,
    ) -> ItemRecord | None:
        """Add an item to an existing payment. Returns None if the payment is gone."""
        with self.payments.lock:
            if self.payments.get(payment_id) is None:
                logger.warning(f"Not adding item '{name}': payment {payment_id} does not exist")
                return None
            return self.items.create(
                payment_id=payment_id,
                name=name,
                qty=qty,
                price=price,
                category_id=category_id,
                created_at=utc_now_iso(),
            )

    def update_item(
        self,
        item_id: int,
        name: str | None = None,
        qty: float | None = None,
        price: int | None = None,
        category_id: int | None = None,
    ) -> ItemRecord | None:
        """Change only the fields that are given."""
        if isinstance(qty, float) and qty.is_integer():
            qty = int(qty)
        values = {
            key: value
            for key, value in (
                ("name", name),
                ("qty", qty),
                ("price", price),
                ("category_id", category_id),
            )
            if value is not None
        }
        if not values:
            return self.items.get(item_id)
        return self.items.update(item_id, values)

    def set_item_category(self, item_id: int, category_id: int | None) -> ItemRecord | None:
        return self.items.update(item_id, {"category_id": category_id})

    def list_items_for_payment(self, payment_id: int) -> list[ItemRecord]:
        return self.items.find_all(lambda i: i.payment_id == payment_id)

    def list_uncategorized_items(self, payment_id: int) -> list[ItemRecord]:
        return self.items.find_all(
            lambda i: i.payment_id == payment_id and i.category_id is None
        )

    # Balance

    def aggregate_balance(self) -> BalanceSummary:
        """
        Sum of (paid - total / 2) per participant over payments with a
        positive total, plus total spent and the number of those payments.
        """
        egor_delta = 0.0
        syoma_delta = 0.0
        total_spent = 0
        count = 0
        for payment in self.payments.find_all(lambda p: p.total > 0):
            half = payment.total / 2
            egor_delta += payment.paid_egor - half
            syoma_delta += payment.paid_syoma - half
            total_spent += payment.total
            count += 1
        return BalanceSummary(
            egor_delta=egor_delta,
            syoma_delta=syoma_delta,
            total_spent=total_spent,
            payments_count=count,
        )
