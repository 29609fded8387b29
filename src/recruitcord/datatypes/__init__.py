"""Plain data structures exchanged between the core and the Discord layer."""
