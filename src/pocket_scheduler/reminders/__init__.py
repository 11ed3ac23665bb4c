"""
Reminder subsystem.

- evaluator.py: turns (events, now) into reminder / overdue signals
- scheduler.py: asyncio polling loop delivering signals to a sink
- runner.py: runs the loop in a background thread next to the console
"""
