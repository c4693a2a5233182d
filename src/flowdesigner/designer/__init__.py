"""Interactive flow diagram designer: surface, gestures, dialogs and persistence."""
