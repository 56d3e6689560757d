from statement_ledger.extraction import (
    clean_residue,
    extract_all,
    extract_training,
    iter_candidates,
    suggest_candidates,
    surviving_tokens,
)

CHQ_DEP = "CHQ DEP:SRI RAJA RAJESWARI ORTHO:CTS"


def test_colon_segment_wins_for_suggestions():
    assert suggest_candidates(CHQ_DEP) == ["sri raja rajeswari ortho"]


def test_transfer_code_pattern():
    assert suggest_candidates("NEFT-123456-KRISHNA-HDFC0001234") == ["krishna"]


def test_cheque_number_pattern_to_end_of_text():
    assert suggest_candidates("CHQ 004512 SHARMA AND SONS") == ["sharma and sons"]


def test_training_uses_every_layer_without_duplicates():
    found = extract_all(CHQ_DEP)
    assert found[0] == "sri raja rajeswari ortho"
    assert "raja rajeswari" in found
    assert "rajeswari ortho" in found
    # Residue layer comes last and keeps the whole cleaned narration.
    assert found[-1] == "chq dep:sri raja rajeswari ortho:cts"
    assert len(found) == len(set(found))
    assert all(c == c.lower() for c in found)


def test_token_filter_drops_codes_and_jargon():
    tokens = surviving_tokens("NEFT CR-HDFC0000123-ACME TRADERS PVT LTD-ICIC0001234")
    assert tokens == ["ACME", "TRADERS", "PVT", "LTD"]


def test_token_windows_are_bounded_to_six_tokens():
    narration = "ONE TWO THREE FOUR FIVE SIX SEVEN EIGHT"
    layers = list(iter_candidates(narration))
    windows = layers[2]
    assert "one two three four five six" in windows
    assert "one two three four five six seven" not in windows


def test_residue_strips_reference_numbers():
    residue = clean_residue("UPI/REF NO:123456789012 UTR:ABC123 RAVI XXXXXX1234 ravi@okaxis")
    assert "123456789012" not in residue
    assert "utr" not in residue
    assert "xxxxxx" not in residue
    assert "@okaxis" not in residue
    assert "ravi" in residue


def test_short_or_empty_narrations_yield_nothing():
    assert suggest_candidates("abc") == []
    assert extract_all("  ab  ") == []
    assert extract_all(None) == []
    assert list(iter_candidates("")) == []


def test_candidates_are_lazy():
    it = iter_candidates(CHQ_DEP)
    assert next(it) == ["sri raja rajeswari ortho"]


def test_training_candidates_are_multi_word_phrases():
    found = extract_training(CHQ_DEP)
    assert found[0] == "sri raja rajeswari ortho"
    assert "raja rajeswari" in found
    assert "raja" not in found
    assert "ortho" not in found
    assert all(len(c.split()) >= 2 and len(c) >= 6 for c in found)


def test_training_windows_span_two_to_four_tokens():
    found = extract_training("ONE TWO THREE FOUR FIVE SIX")
    assert "one two" in found
    assert "one two three four" in found
    assert "one two three four five" not in found


def test_single_word_transfer_match_is_not_trained():
    assert suggest_candidates("NEFT-123456-KRISHNA-HDFC0001234") == ["krishna"]
    assert "krishna" not in extract_training("NEFT-123456-KRISHNA-HDFC0001234")
