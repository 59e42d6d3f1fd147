"""Text analysis for promise chains.

- scanner: balanced-delimiter scanning
- locator: chain marker search
- classifier: rejection-handling classification
- synthesizer: catch-clause insertion
- auditor: chain/handler count consistency check
"""
