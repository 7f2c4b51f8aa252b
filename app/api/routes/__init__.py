"""HTTP routes: sync triggers and the read-only games projection."""
