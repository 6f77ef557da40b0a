"""Segmentation core — normalizer, lexicon, scorers, solvers, and session.

WHY: The core package holds the algorithmic heart of the tool: deciding
which syllable groupings are real words and attaching translations. It
is independent of the HTTP API and the CLI.

HOW: normalizer.py turns text into syllables; lexicon.py holds the
dictionary; greedy.py and optimizer.py are the two segmenters (the latter
fed by scorer.py); frequency.py aggregates vocabulary counts; session.py
ties lexicon and oracle together behind the user-facing operations.

RULES:
- models.py dataclasses are the contract between the core and its callers
- Only optimizer/session talk to the oracle; greedy and frequency never do
"""
