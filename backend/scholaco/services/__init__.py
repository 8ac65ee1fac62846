"""Service layer for the Scholaco backend."""
