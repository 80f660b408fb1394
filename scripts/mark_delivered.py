"""
Mark pending orders as delivered.

Warehouse helper: moves the given orders (or every pending order of a
customer) to 'delivered' through the lifecycle engine, which stamps
delivered_at once and opens the 72-hour post-delivery window.

A customer's pending orders are read in batches, newest first, walking
back by creation time so orders that fail to update are not re-read.

Usage:
    python scripts/mark_delivered.py ORD-1001 ORD-1002
    python scripts/mark_delivered.py --customer CUST-42 [--batch-size 100]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.data import OrderQuery
from core.errors import OrderLifecycleError
from main import configure_logging, get_engine
from use_cases.orders.domain.models import OrderStatus


def pending_order_ids(engine, user_id: str, batch_size: int = 100):
    """Yield every pending order id of a customer, one query per batch."""
    seen = set()
    created_to = None
    limit = batch_size
    while True:
        batch = engine.orders.query(OrderQuery(
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            created_to=created_to,
            limit=limit,
        ))
        fresh = [order for order in batch if order.id not in seen]
        if not fresh:
            if len(batch) < limit:
                return
            # A full batch of already seen orders sharing one creation time
            limit *= 2
            continue
        for order in fresh:
            seen.add(order.id)
            yield order.id
        if len(batch) < limit:
            return
        limit = batch_size
        # created_to is inclusive; orders sharing the boundary time are filtered by `seen`
        created_to = batch[-1].created_at


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Mark orders as delivered")
    parser.add_argument("order_ids", nargs="*", help="Order IDs to mark delivered")
    parser.add_argument("--customer", help="Mark every pending order of this customer")
    parser.add_argument("--batch-size", type=int, default=100, help="Orders read per query with --customer")
    args = parser.parse_args(argv)

    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")

    configure_logging()
    engine = get_engine()

    order_ids = list(args.order_ids)
    if args.customer:
        order_ids.extend(pending_order_ids(engine, args.customer, args.batch_size))

    if not order_ids:
        print("No orders to update.")
        return 0

    print(f"Marking {len(order_ids)} orders as delivered...")
    failures = 0
    for order_id in order_ids:
        try:
            order = engine.apply_mark_delivered(order_id)
        except OrderLifecycleError as e:
            failures += 1
            print(f"  Skipped {order_id}: {e}")
            continue
        print(f"  Updated {order.order_no}: status={order.status}, delivered_at={order.delivered_at.isoformat()}")

    print(f"Done! {len(order_ids) - failures} delivered, {failures} skipped.")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
