"""Core domain: sessions, permissions and the shared access decision path."""
