"""
Sequential crawl subsystem.

Structure:
- catalog.py: city / zone / category lists and traversal order
- accumulator.py: name-based dedup merge and the owned record collection
- controller.py: traversal, per-tuple quota retry, cooperative cancellation
- progress.py: reporter contract for observers
- storage/: durable backup of the collection
"""
