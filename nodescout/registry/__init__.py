"""Submission registry.

Reference implementation of the online registration endpoint: nodes POST a
submission, discovery GETs the recently seen ones. Also holds the node-side
helpers for registering with it or with an S3 bucket directly.

Submitters are not authenticated.
"""
