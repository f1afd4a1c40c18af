"""Participant discovery.

Answers "which peer nodes are currently participating?" from one of two
sources, chosen once when the service is built:
- an online registration endpoint that returns the current submission list
- a time-windowed prefix of an S3 bucket where nodes write submission objects

Every call returns a fresh, deduplicated ``set`` of ``NodeIdentity`` values.
Nothing is cached between calls; callers are expected to poll.
"""
