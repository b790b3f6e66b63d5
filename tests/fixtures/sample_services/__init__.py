"""Namespace scanned by discovery tests. Importing it must not import its children."""
