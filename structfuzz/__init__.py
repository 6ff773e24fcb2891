"""
structfuzz: a structural fuzzing engine for typed document graphs.

It recurses through sparse, nested, polymorphic documents, applies randomly
chosen corruptions per node, synthesizes missing sub-elements on demand and
returns a nested log describing every change.
"""

__version__ = "0.1.0"
