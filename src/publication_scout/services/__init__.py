"""Search, analytics and summarization services for PublicationScout."""
