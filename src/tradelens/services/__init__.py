"""Analyzer services: ingestion loop, history store, render planning and reporting."""
