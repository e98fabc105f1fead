"""Interactive bilingual reading core.

Sentence context extraction, memoised word/sentence translation, orientation
mapping and saved-vocabulary lookups for token streams produced by the
upstream story generation step.
"""

__version__ = "0.4.0"

__all__ = ["__version__"]
