"""Export MongoDB collections to JSON with inferred schemas, and import them back."""

__version__ = "0.1.0"
