"""External integrations: chain reader, error taxonomy and logging."""
