"""Shared configuration, logging, persistence and errors for the indexer."""
