"""Configuration for TableTranslate."""
