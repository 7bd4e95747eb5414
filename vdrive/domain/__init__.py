"""Domain layer: path codec, result type, and exceptions.

No dependency on infrastructure (object store SDKs, cache backends).
"""
