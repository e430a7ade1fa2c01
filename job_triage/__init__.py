"""Harvest LinkedIn job postings and triage them against a resume with an LLM."""

__version__ = "0.2.0"
