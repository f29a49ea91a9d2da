"""Command line tool for running the fact-annotator agent."""
