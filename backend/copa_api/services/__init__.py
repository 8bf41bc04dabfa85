"""
Services Layer

Business logic that:
- Accepts domain inputs (IDs, sessions, scores)
- Returns domain outputs (models, dicts)
- Raises copa_api.errors.BracketError subclasses; never HTTP objects
- Owns its transaction boundary (commit / rollback)
"""
