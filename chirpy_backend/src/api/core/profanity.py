PROFANE_WORDS = frozenset({"kerfuffle", "sharbert", "fornax"})
CENSORED = "****"
_TRAILING_PUNCTUATION = ".,!?;:"


# PUBLIC_INTERFACE
def filter_profanity(text: str) -> str:
    """Replace profane words (case-insensitive, space separated) with ****.

    Trailing punctuation of a censored word is kept, so "Kerfuffle!" becomes "****!".
    """
    words = text.split(" ")
    for i, word in enumerate(words):
        core = word.rstrip(_TRAILING_PUNCTUATION)
        if core.lower() in PROFANE_WORDS:
            words[i] = CENSORED + word[len(core):]
    return " ".join(words)
