"""Infrastructure adapters: postgres, redis, auth, and the document store."""
