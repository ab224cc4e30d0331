"""Reading and rewriting `docker save` archives."""
