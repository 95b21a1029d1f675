"""Loader components: store, fetch orchestration, scroll and bootstrap."""
