"""Custom metrics for the menu service."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-svc")

menu_request_counter = meter.create_counter(
    name="menu_requests_total",
    description="Menu read requests by data source and outcome",
    unit="1",
)

menu_mutation_counter = meter.create_counter(
    name="menu_mutations_total",
    description="Create, update and delete requests by outcome",
    unit="1",
)

connection_attempt_counter = meter.create_counter(
    name="mongo_connection_attempts_total",
    description="MongoDB connection attempts by outcome",
    unit="1",
)

menu_items_histogram = meter.create_histogram(
    name="menu_items_served",
    description="Number of items returned per menu response",
    unit="1",
)


def record_menu_request(source: str, outcome: str, item_count: int = 0) -> None:
    """Record a menu read.

    Args:
        source: Where the data came from ("database", "file" or "none")
        outcome: Query status value
        item_count: Number of items returned
    """
    menu_request_counter.add(1, {"source": source, "outcome": outcome})
    if item_count:
        menu_items_histogram.record(item_count, {"source": source})


def record_mutation(operation: str, outcome: str) -> None:
    """Record a create/update/delete request.

    Args:
        operation: "create", "update" or "delete"
        outcome: Mutation status value
    """
    menu_mutation_counter.add(1, {"operation": operation, "outcome": outcome})


def record_connection_attempt(outcome: str) -> None:
    """Record a single MongoDB connection attempt.

    Args:
        outcome: "success", "no_collection" or "error"
    """
    connection_attempt_counter.add(1, {"outcome": outcome})
