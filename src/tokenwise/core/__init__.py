"""Core token engine logic: budgets, compaction, routing, caching and usage."""
