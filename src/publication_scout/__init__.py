"""PublicationScout: browse, search and analyze research publications."""

__version__ = "0.1.0"
