"""
erp_ingestion -- boundary between backend records and the approval core.

Raw REST records are normalized here exactly once (role names, flag
encodings, JSON-or-native list fields) so nothing deeper in the core has
to guess at representations.
"""
