"""
Example: Checking data and event streams with Kondition

This example shows how conditions are composed, how a failed evaluation
explains itself, and how the sequence matchers validate collections and
events produced by a background worker.
"""

import threading
import time
from dataclasses import dataclass

from kondition import (
    AssertionFailure,
    LiveQueue,
    PrintHook,
    assert_that,
    blocking_queue,
    contains_subsequence,
    equal_in_any_order,
    equal_to,
    equal_to_items,
    evaluate,
    evaluate_traced,
    explain,
    greater_than,
    has,
    map_has,
    repeat_max,
)

# =============================================================================
# Domain model
# =============================================================================


@dataclass(frozen=True)
class Order:
    items: list[str]
    total: float = 0.0
    status: str = "pending"


# =============================================================================
# 1. Composite conditions
# =============================================================================

is_valid_order = (
    has("item count", lambda order: len(order.items)).matching(greater_than(0))
    & has("total").matching(greater_than(0))
    & has("status").equal_to("pending")
)

# =============================================================================
# 2. Precedence of chained calls
# =============================================================================

# is shipped or (is paid and is in stock)
can_dispatch = (
    map_has("status", "shipped")
    .or_(map_has("status", "paid"))
    .and_(map_has("in_stock", True))
)

# =============================================================================
# 3. Sequences
# =============================================================================

order_lines = equal_to_items(["widget", "gadget"])
any_order_lines = equal_in_any_order(["widget", "gadget", "gizmo"])
lifecycle = contains_subsequence(["created", "paid", "shipped"])

# =============================================================================
# Run examples
# =============================================================================

if __name__ == "__main__":
    # --- 1. Composite conditions ---
    print("=== 1. Composite Conditions ===\n")
    print(explain(is_valid_order))
    print()
    for order in [Order(["widget"], 9.99), Order([], 0.0, "shipped")]:
        result = evaluate(order, is_valid_order)
        print(f"  {order!r} -> {'ok' if result else result}")

    # --- 2. Precedence ---
    print("\n=== 2. Precedence of Chained Calls ===\n")
    print(f"  {can_dispatch}")
    for record in [{"status": "shipped"}, {"status": "paid", "in_stock": False}]:
        print(f"  {record!r:40s} -> {bool(evaluate(record, can_dispatch))}")

    # --- 3. Collections ---
    print("\n=== 3. Collections ===\n")
    print(evaluate(["widget", "gizmo"], order_lines))
    print()
    print(evaluate(["gizmo", "widget", "doohickey"], any_order_lines))

    # --- 4. Events from a worker ---
    print("\n=== 4. Events From a Worker ===\n")
    events = LiveQueue()

    def worker():
        for event in ["created", "updated", "paid", "packed", "shipped"]:
            time.sleep(0.02)
            events.put(event)

    threading.Thread(target=worker, daemon=True).start()
    try:
        assert_that(events, blocking_queue(lifecycle, timeout=1.0))
        print("  lifecycle observed")
    except AssertionFailure as e:
        print(f"  {e}")

    # --- 5. Polling ---
    print("\n=== 5. Polling With repeat_max ===\n")
    states = iter(["queued", "running", "done"])
    result = evaluate(lambda: next(states), repeat_max(equal_to("done"), 5, delay=0.01))
    print(f"  passed={result.passed}")

    # --- 6. Tracing ---
    print("\n=== 6. Tracing ===\n")
    evaluate_traced(Order(["widget"], 9.99), is_valid_order, PrintHook())
