"""Life Long Learning Model: ask questions, keep notes, get quizzed."""
