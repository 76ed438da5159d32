"""XMI serialization of documents."""
