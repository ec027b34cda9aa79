"""Infrastructure adapters: logging, database, messaging, external HTTP."""
