"""Viet Listener — Vietnamese word segmentation with attached translations.

WHY: Vietnamese writes every syllable as a separate whitespace-delimited
token, so word boundaries are invisible. A learner reading a transcript
needs "cái này" grouped as one word ("this"), not two. A static dictionary
covers only part of the vocabulary, so the segmenter combines it with an
external translation oracle and an optimizer that decides which syllable
groupings are real compound words.

HOW: Four layers — normalize (syllables), resolve (lexicon + oracle),
score (compound heuristics), solve (dynamic programming). A session object
owns the mutable lexicon and the oracle's translation cache so every
request shares them explicitly. The HTTP API and CLI are thin wrappers.

RULES:
- Every segmentation exactly covers the input syllables (no gaps, no overlaps)
- Dictionary spans always outrank oracle-detected compounds, which always
  outrank coincidental groupings
- Untranslated passthrough is flagged (origin "identity-fallback"), never silent
- Learned compounds live in memory only until explicitly exported
"""

__version__ = "0.1.0"
