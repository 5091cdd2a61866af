"""Logging, validation, paths and blob storage shared by the database layer."""
