"""Basic usage example for ExploreQL.

run from the repository root after `pip install -e .`:

    python examples/basic_usage.py
"""

from pathlib import Path

from exploreql import ExploreStore
from exploreql.models.state import ExplorerState
from exploreql.settings import Settings

EXPLORES_DIR = Path(__file__).parent / "explores"

ORDERS = [
    (1, 1, 100.0, "paid", "2024-01-15"),
    (2, 2, 150.0, "paid", "2024-01-16"),
    (3, 1, 200.0, "pending", "2024-01-17"),
    (4, 3, 75.0, "paid", "2024-02-01"),
    (5, 4, 300.0, "cancelled", "2024-02-10"),
    (6, 2, 50.0, "paid", "2024-03-01"),
]
CUSTOMERS = [(1, "US", 34), (2, "UK", 28), (3, "US", 45), (4, "DE", 52)]


def load_sample_data(store: ExploreStore) -> None:
    conn = store.executor.conn
    conn.execute(
        "CREATE TABLE orders (order_id INTEGER, customer_id INTEGER, amount DOUBLE, "
        "status VARCHAR, created_at DATE)"
    )
    conn.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?)", ORDERS)
    conn.execute("CREATE TABLE customers (id INTEGER, country VARCHAR, age INTEGER)")
    conn.executemany("INSERT INTO customers VALUES (?, ?, ?)", CUSTOMERS)


def main():
    """Demonstrate ExploreQL capabilities."""
    store = ExploreStore(EXPLORES_DIR, settings=Settings(dialect="duckdb"))
    load_sample_data(store)

    print("=" * 60)
    print("ExploreQL Orders Demo")
    print("=" * 60)

    # 1. Measures only
    print("\n1. Order Summary:")
    result = store.query("orders", measures=["orders_total", "orders_count"])
    row = result.data[0]
    print(f"   Total: ${row['orders_total']:,.2f} across {row['orders_count']} orders")

    # 2. Breakdown by a dimension, sorted
    print("\n2. Total by Status:")
    result = store.query(
        "orders",
        dimensions=["orders_status"],
        measures=["orders_total"],
        sorts=["-orders_total"],
    )
    for row in result.data:
        print(f"   {row['orders_status']}: ${row['orders_total']:,.2f}")

    # 3. A dimension from a joined table
    print("\n3. Total by Customer Country:")
    result = store.query(
        "orders",
        dimensions=["customers_country"],
        measures=["orders_total", "orders_unique_customers"],
    )
    for row in result.data:
        print(
            f"   {row['customers_country']}: ${row['orders_total']:,.2f} "
            f"({row['orders_unique_customers']} customers)"
        )

    # 4. Filters
    print("\n4. Paid orders over $60:")
    filters = [
        store.parse_filter("orders", "orders_status=paid"),
        store.parse_filter("orders", "orders_amount>60"),
    ]
    result = store.query("orders", measures=["orders_count"], filters=filters)
    print(f"   {result.data[0]['orders_count']} orders")

    # 5. Build a query click by click, then compile it
    print("\n5. Generated SQL from explorer state:")
    state = (
        ExplorerState()
        .set_table_name("orders")
        .toggle_dimension("orders_status")
        .toggle_metric("orders_average_amount")
        .toggle_sort_field("orders_average_amount")
        .set_row_limit(10)
    )
    sql = store.compile_saved(
        {"name": "demo", "tableName": state.table_name, "metricQuery": state.to_metric_query()}
    )
    for line in sql.splitlines():
        print(f"   {line}")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)

    store.close()


if __name__ == "__main__":
    main()
