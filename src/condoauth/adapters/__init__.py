"""Infrastructure adapters: storage and audit."""
