"""
Read-side views over the store.

- events.py: by date / range, upcoming vs attended, calendar month grid
- tasks.py: filters, multi-key sort, due-date predicates, stats
- stats.py: collection totals
"""
