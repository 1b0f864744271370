"""Digit-pattern engine: pure transforms over chart cells.

- digits: jodi decomposition (top / bottom digits) and special values
- tokens: per-day query token grammar
- scan: row matching, grid scan and match navigation
- groups: pattern-group extraction for pattern service matrices
"""
