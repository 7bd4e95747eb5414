"""Infrastructure: object store adapters and cache backends."""
