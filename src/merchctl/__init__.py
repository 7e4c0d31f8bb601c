"""merchctl — ordered-slot placement for storefront merchandising content."""

__version__ = "0.1.0"
