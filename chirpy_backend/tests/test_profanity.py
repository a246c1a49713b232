from src.api.core.profanity import filter_profanity


def test_clean_text_is_unchanged():
    assert filter_profanity("Hello!") == "Hello!"


def test_profane_word_is_censored_case_insensitively():
    text = "This is a keRfUfFle opinion I need to share with the world!"
    assert filter_profanity(text) == "This is a **** opinion I need to share with the world!"


def test_trailing_punctuation_is_kept():
    assert filter_profanity("keRfUfFle!") == "****!"
    assert filter_profanity("Sharbert, fornax.") == "****, ****."


def test_words_containing_profanity_are_kept():
    assert filter_profanity("kerfuffles sharbertish") == "kerfuffles sharbertish"


def test_spacing_is_preserved():
    assert filter_profanity("  fornax  x ") == "  ****  x "
